"""
API client module for Tableau API Client.
Endpoint methods for authentication, sites, projects, users and datasources.
"""

from typing import Callable, List, Optional, TypeVar, Union
from urllib.parse import quote
import requests

from tableau_client.core.models import (
    APISession,
    Credentials,
    Datasource,
    DEFAULT_SITE_NAME,
    Project,
    ServerInfo,
    SignInResult,
    Site,
    User,
)
from tableau_client.handlers.dispatcher import (
    APPLICATION_XML,
    CONTENT_TYPE_HEADER,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DELETE,
    GET,
    POST,
    RequestDispatcher,
    ResourceNotFoundError,
)
from tableau_client.handlers.multipart import MultipartBuilder
from tableau_client.handlers.xml_transformer import XMLTransformer


# serverinfo only exists from REST API 2.4 on
SERVER_INFO_API_VERSION = '2.4'

Record = TypeVar('Record')


def _flag(value: bool) -> str:
    return 'true' if value else 'false'


def _segment(value) -> str:
    """Percent-encode one path segment, slashes included."""
    return quote(str(value), safe='')


class TableauAPI:
    """
    Client for the Tableau Server REST API.

    Sign in first; the returned token is kept on ``self.session`` and sent
    with every later call. Lookups by name list the collection and scan
    it, since the API has no direct lookup for them.
    """

    def __init__(self, server: str, version: str,
                 default_site_name: str = DEFAULT_SITE_NAME,
                 omit_default_site_name: bool = True,
                 connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
                 read_timeout: float = DEFAULT_READ_TIMEOUT,
                 http: Optional[requests.Session] = None):
        """
        Initialize API client.

        Args:
            server: Server base URL, e.g. https://tableau.example.com
            version: REST API version, e.g. 2.3
            default_site_name: Name the server gives its default site
            omit_default_site_name: Send an empty content URL when signing
                in to the default site
            connect_timeout: Connect-phase timeout in seconds
            read_timeout: Read/write timeout in seconds
            http: Shared requests session (created if omitted)
        """
        self.session = APISession(
            server=server,
            version=version,
            default_site_name=default_site_name,
            omit_default_site_name=omit_default_site_name,
        )
        self.transformer = XMLTransformer()
        self.dispatcher = RequestDispatcher(
            self.session,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            http=http,
            transformer=self.transformer,
        )
        self.logger = None

    @classmethod
    def from_config(cls, config, http: Optional[requests.Session] = None) -> 'TableauAPI':
        """Build a client from a tableau_client.core.config.Config."""
        return cls(
            config.server_url,
            config.api_version,
            default_site_name=config.default_site_name,
            omit_default_site_name=config.omit_default_site_name,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            http=http,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self.dispatcher.close()

    def _get_logger(self):
        """Lazy logger initialization."""
        if self.logger is None:
            from tableau_client.core.logger import get_logger
            self.logger = get_logger()
        return self.logger

    def _url(self, path: str) -> str:
        return self.session.api_url(path)

    def _get(self, url: str, parser: Callable[[bytes], Record]) -> Record:
        return self.dispatcher.dispatch(url, GET, parser=parser)

    def _post_xml(self, url: str, payload: bytes,
                  parser: Optional[Callable[[bytes], Record]] = None) -> Optional[Record]:
        headers = {CONTENT_TYPE_HEADER: APPLICATION_XML}
        return self.dispatcher.dispatch(url, POST, payload, headers, parser)

    def _delete(self, url: str) -> None:
        self.dispatcher.dispatch(url, DELETE)

    @property
    def auth_token(self) -> Optional[str]:
        return self.session.auth_token

    # Authentication

    def signin(self, username: str, password: str, content_url: str = '',
               user_id_to_impersonate: Optional[str] = None) -> SignInResult:
        """
        Sign in and store the auth token on the session.

        Args:
            username: User name
            password: Password
            content_url: Content URL of the site; empty for the default site
            user_id_to_impersonate: Optional id of a user to act as

        Returns:
            SignInResult with token, site id and user id

        Raises:
            ServerError: Bad credentials or unknown site
        """
        site_content_url = content_url or ''
        if self.session.omit_default_site_name and site_content_url == self.session.default_site_name:
            site_content_url = ''

        credentials = Credentials(
            name=username,
            password=password,
            site_content_url=site_content_url,
            impersonate_user_id=user_id_to_impersonate or None,
        )
        payload = self.transformer.signin_request(credentials)

        result = self._post_xml(self._url('auth/signin'), payload, self.transformer.parse_signin)

        self.session.auth_token = result.token
        self.session.site_id = result.site_id
        self.session.user_id = result.user_id
        self._get_logger().info(
            f"Signed in as {username} (site '{site_content_url or self.session.default_site_name}', "
            f"site id {result.site_id})"
        )
        return result

    def signout(self) -> None:
        """
        Sign out. The local token is left in place; sign in again to replace it.
        """
        headers = {CONTENT_TYPE_HEADER: APPLICATION_XML}
        self.dispatcher.dispatch(self._url('auth/signout'), POST, headers=headers)
        self._get_logger().info("Signed out")

    def server_info(self) -> ServerInfo:
        url = self.session.api_url('serverinfo', version=SERVER_INFO_API_VERSION)
        return self._get(url, self.transformer.parse_server_info)

    # Sites

    def query_sites(self) -> List[Site]:
        return self._get(self._url('sites/'), self.transformer.parse_sites)

    def query_site(self, site_id: str, include_storage: bool = False) -> Site:
        """
        Query one site by id.

        Args:
            site_id: Site id
            include_storage: Ask for user count and storage usage
        """
        url = self._url(f"sites/{_segment(site_id)}")
        if include_storage:
            url += f"?includeStorage={_flag(include_storage)}"
        return self._get(url, self.transformer.parse_site)

    def _find_site(self, description: str, matches: Callable[[Site], bool],
                   key: str, value: str, include_storage: bool) -> Site:
        for site in self.query_sites():
            if matches(site):
                if include_storage:
                    return self.query_site(site.id, include_storage=True)
                return site
        raise ResourceNotFoundError(f"Site {description} '{value}' Not Found", key, value)

    def query_site_by_name(self, name: str, include_storage: bool = False) -> Site:
        """
        Find a site by exact name.

        Raises:
            ResourceNotFoundError: No site has that name
        """
        return self._find_site('Named', lambda site: site.name == name, 'name', name, include_storage)

    def query_site_by_content_url(self, content_url: str, include_storage: bool = False) -> Site:
        """
        Find a site by exact content URL.

        Raises:
            ResourceNotFoundError: No site has that content URL
        """
        return self._find_site(
            'with Content URL',
            lambda site: site.content_url == content_url,
            'contentUrl',
            content_url,
            include_storage,
        )

    def get_site_id(self, site_name: str) -> str:
        return self.query_site_by_name(site_name).id

    def create_site(self, site: Site) -> Site:
        """Create a site. Requires a server administrator sign-in."""
        payload = self.transformer.site_request(site)
        return self._post_xml(self._url('sites'), payload, self.transformer.parse_site)

    def delete_site(self, site_id: str) -> None:
        self._delete(self._url(f"sites/{_segment(site_id)}"))

    def _delete_site_by_key(self, key: str, value: str) -> None:
        self._delete(self._url(f"sites/{_segment(value)}?key={key}"))

    def delete_site_by_name(self, name: str) -> None:
        self._delete_site_by_key('name', name)

    def delete_site_by_content_url(self, content_url: str) -> None:
        self._delete_site_by_key('contentUrl', content_url)

    # Users

    def query_user_on_site(self, site_id: str, user_id: str) -> User:
        url = self._url(f"sites/{_segment(site_id)}/users/{_segment(user_id)}")
        return self._get(url, self.transformer.parse_user)

    # Projects

    def query_projects(self, site_id: str) -> List[Project]:
        return self._get(self._url(f"sites/{_segment(site_id)}/projects"), self.transformer.parse_projects)

    def get_project_by_name(self, site_id: str, name: str) -> Project:
        """
        Find a project by exact name.

        Raises:
            ResourceNotFoundError: No project has that name
        """
        for project in self.query_projects(site_id):
            if project.name == name:
                return project
        raise ResourceNotFoundError(f"Project Named '{name}' Not Found", 'name', name)

    def get_project_by_id(self, site_id: str, project_id: str) -> Project:
        for project in self.query_projects(site_id):
            if project.id == project_id:
                return project
        raise ResourceNotFoundError(f"Project with ID '{project_id}' Not Found", 'id', project_id)

    def create_project(self, site_id: str, project: Project) -> Project:
        payload = self.transformer.project_request(project)
        url = self._url(f"sites/{_segment(site_id)}/projects")
        return self._post_xml(url, payload, self.transformer.parse_project)

    def delete_project(self, site_id: str, project_id: str) -> None:
        self._delete(self._url(f"sites/{_segment(site_id)}/projects/{_segment(project_id)}"))

    # Datasources

    def query_datasources(self, site_id: str) -> List[Datasource]:
        url = self._url(f"sites/{_segment(site_id)}/datasources")
        return self._get(url, self.transformer.parse_datasources)

    def get_datasource_by_name(self, site_id: str, name: str) -> Datasource:
        for datasource in self.query_datasources(site_id):
            if datasource.name == name:
                return datasource
        raise ResourceNotFoundError(f"Datasource Named '{name}' Not Found", 'name', name)

    def publish_tds(self, site_id: str, tds_metadata: Datasource,
                    full_tds: Union[bytes, str], overwrite: bool = False) -> Datasource:
        """
        Publish a .tds datasource definition.

        Args:
            site_id: Target site id
            tds_metadata: Datasource name and target project
            full_tds: Contents of the .tds file
            overwrite: Replace an existing datasource of the same name

        Returns:
            The published datasource as reported by the server
        """
        return self.publish_datasource(site_id, tds_metadata, full_tds, 'tds', overwrite)

    def publish_datasource(self, site_id: str, metadata: Datasource,
                           datasource: Union[bytes, str], datasource_type: str,
                           overwrite: bool = False) -> Datasource:
        """
        Publish a datasource file in a single multipart request.

        The body holds the request_payload XML part followed by the
        tableau_datasource file part named ``<metadata.name>.<datasource_type>``.
        """
        if not metadata.name:
            raise ValueError("Datasource metadata must have a name to publish")

        url = self._url(
            f"sites/{_segment(site_id)}/datasources"
            f"?datasourceType={datasource_type}&overwrite={_flag(overwrite)}"
        )

        builder = MultipartBuilder()
        builder.add_part('request_payload', self.transformer.datasource_request(metadata), 'text/xml')
        builder.add_part(
            'tableau_datasource',
            datasource,
            'application/octet-stream',
            filename=f"{metadata.name}.{datasource_type}",
        )
        payload = builder.build()

        self._get_logger().info(
            f"Publishing {datasource_type} datasource '{metadata.name}' ({len(payload)} bytes)"
        )
        headers = {CONTENT_TYPE_HEADER: builder.content_type}
        return self.dispatcher.dispatch(url, POST, payload, headers, self.transformer.parse_datasource)

    def delete_datasource(self, site_id: str, datasource_id: str) -> None:
        self._delete(self._url(f"sites/{_segment(site_id)}/datasources/{_segment(datasource_id)}"))
