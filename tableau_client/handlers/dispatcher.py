"""
Request dispatcher for Tableau API Client.
Sends every REST call through one pooled HTTP session and maps the
response status onto results or structured errors.
"""

import logging
from typing import Callable, Dict, Optional, TypeVar, Union
import requests
from requests.exceptions import RequestException, Timeout, ConnectionError

from tableau_client.core.models import APISession
from tableau_client.handlers.xml_transformer import XMLTransformer


AUTH_HEADER = 'X-Tableau-Auth'
CONTENT_TYPE_HEADER = 'Content-Type'
CONTENT_LENGTH_HEADER = 'Content-Length'
APPLICATION_XML = 'application/xml'

GET = 'GET'
POST = 'POST'
DELETE = 'DELETE'

DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 30

Result = TypeVar('Result')


class APIError(Exception):
    """Base class for errors raised while talking to the Tableau API."""
    pass


class TransportError(APIError):
    """Raised when the request never produced an HTTP response."""
    pass


class DoesNotExistError(APIError):
    """Raised when the server answers HTTP 404."""

    def __init__(self, url: Optional[str] = None):
        super().__init__("Does Not Exist")
        self.url = url


class ServerError(APIError):
    """Raised for a non-success status carrying the server's error envelope."""

    def __init__(self, status_code: int, code: Optional[str] = None,
                 summary: Optional[str] = None, detail: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        self.summary = summary
        self.detail = detail

        message = f"HTTP {status_code}"
        if code:
            message += f" error {code}"
        if summary:
            message += f": {summary}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)


class ResourceNotFoundError(APIError):
    """Raised when a lookup by name or id finds no matching record."""

    def __init__(self, message: str, key: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.value = value


def _mask(token: str) -> str:
    return f"{token[:4]}..." if len(token) > 8 else '***'


class RequestDispatcher:
    """
    Builds, sends and interprets every API request.

    The session's auth token, when present, is attached to each request
    under the X-Tableau-Auth header. Failures are raised immediately;
    there are no retries.
    """

    def __init__(self, session: APISession,
                 connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
                 read_timeout: float = DEFAULT_READ_TIMEOUT,
                 http: Optional[requests.Session] = None,
                 transformer: Optional[XMLTransformer] = None):
        """
        Initialize the dispatcher.

        Args:
            session: Connection state holding the auth token
            connect_timeout: Default connect-phase timeout in seconds
            read_timeout: Default read/write timeout in seconds
            http: Shared requests session; one is created if omitted
            transformer: XML transformer used to parse error envelopes
        """
        self.session = session
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.http = http if http is not None else requests.Session()
        self.transformer = transformer or XMLTransformer()
        self.logger = None

    def _get_logger(self):
        """Lazy logger initialization."""
        if self.logger is None:
            from tableau_client.core.logger import get_logger
            self.logger = get_logger()
        return self.logger

    def close(self):
        """Release pooled connections."""
        self.http.close()

    def dispatch(self, url: str, method: str,
                 payload: Optional[Union[bytes, str]] = None,
                 headers: Optional[Dict[str, str]] = None,
                 parser: Optional[Callable[[bytes], Result]] = None,
                 connect_timeout: Optional[float] = None,
                 read_timeout: Optional[float] = None) -> Optional[Result]:
        """
        Send one request and interpret the response.

        Args:
            url: Absolute request URL
            method: HTTP verb
            payload: Optional request body
            headers: Extra request headers
            parser: Callable turning the success body into a result
            connect_timeout: Override for the connect-phase timeout
            read_timeout: Override for the read/write timeout

        Returns:
            parser(body) on success, or None when no parser is given

        Raises:
            TransportError: Connection, timeout or URL failure
            DoesNotExistError: HTTP 404
            ServerError: Any other status >= 300
            XMLTransformError: The error or result body is not valid XML
        """
        method = method.strip().upper()
        url = url.strip()
        if isinstance(payload, str):
            payload = payload.encode('utf-8')

        request_headers = {}
        if payload:
            request_headers[CONTENT_LENGTH_HEADER] = str(len(payload))
        if headers:
            request_headers.update(headers)
        if self.session.auth_token:
            request_headers[AUTH_HEADER] = self.session.auth_token

        timeout = (
            connect_timeout if connect_timeout is not None else self.connect_timeout,
            read_timeout if read_timeout is not None else self.read_timeout,
        )

        logger = self._get_logger()
        logger.info(f"{method} {url}")
        if payload:
            logger.debug(f"Request body: {len(payload)} bytes")
        if AUTH_HEADER in request_headers:
            logger.debug(f"{AUTH_HEADER}: {_mask(request_headers[AUTH_HEADER])}")

        try:
            response = self.http.request(
                method,
                url,
                data=payload or None,
                headers=request_headers,
                timeout=timeout,
            )
        except Timeout as e:
            raise TransportError(f"Request timed out ({method} {url}): {e}") from e
        except ConnectionError as e:
            raise TransportError(f"Connection error ({method} {url}): {e}") from e
        except RequestException as e:
            raise TransportError(f"HTTP request failed ({method} {url}): {e}") from e

        body = response.content
        status = response.status_code
        logger.info(f"Received response: HTTP {status}")
        if body and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Response body:\n{self.transformer.pretty_print(body)}")

        if status == 404:
            raise DoesNotExistError(url)

        if status >= 300:
            details = self.transformer.parse_error(body)
            error = ServerError(status, **details)
            logger.error(str(error))
            raise error

        if parser is None:
            return None
        return parser(body)
