"""Core infrastructure modules."""

from tableau_client.core.config import Config, ConfigError
from tableau_client.core.logger import Logger, get_logger
from tableau_client.core.models import (
    APISession,
    Credentials,
    Datasource,
    Project,
    ServerInfo,
    SignInResult,
    Site,
    User,
)

__all__ = [
    'Config',
    'ConfigError',
    'Logger',
    'get_logger',
    'APISession',
    'Credentials',
    'Datasource',
    'Project',
    'ServerInfo',
    'SignInResult',
    'Site',
    'User',
]
