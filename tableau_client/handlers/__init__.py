"""Request dispatch, XML, multipart and endpoint handlers."""

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
