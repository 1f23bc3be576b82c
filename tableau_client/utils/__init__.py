"""Utility functions and helpers."""

from tableau_client.utils.files import (
    DatasourceFileError,
    datasource_type_for,
    read_datasource_file,
    get_file_size_mb,
    format_duration,
)

__all__ = [
    'DatasourceFileError',
    'datasource_type_for',
    'read_datasource_file',
    'get_file_size_mb',
    'format_duration',
]
