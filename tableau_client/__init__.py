"""
Tableau API Client Package
A thin client for the Tableau Server REST API: sign-in, sites, projects,
users and datasource publishing.
"""

__version__ = '1.0.0'

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
from tableau_client.handlers.xml_transformer import XMLTransformer, XMLTransformError
from tableau_client.handlers.multipart import MultipartBuilder, MultipartError
from tableau_client.handlers.dispatcher import (
    APIError,
    DoesNotExistError,
    RequestDispatcher,
    ResourceNotFoundError,
    ServerError,
    TransportError,
)
from tableau_client.handlers.api_client import TableauAPI

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
    'XMLTransformer',
    'XMLTransformError',
    'MultipartBuilder',
    'MultipartError',
    'APIError',
    'DoesNotExistError',
    'RequestDispatcher',
    'ResourceNotFoundError',
    'ServerError',
    'TransportError',
    'TableauAPI',
]
