"""
Value records mirroring the Tableau REST API XML schema.

Each record field maps to one XML attribute, either on the record's own
element or on a named child element (for example a datasource's
``<project id="..."/>``). The mapping lives in the field metadata and is
read by XMLTransformer.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Optional


DEFAULT_SITE_NAME = 'Default'


def xml_attr(name: str, child: Optional[str] = None, **kwargs):
    """Declare a record field stored in XML attribute ``name`` (of ``child`` if given)."""
    kwargs.setdefault('default', None)
    return field(metadata={'xml': name, 'child': child}, **kwargs)


@dataclass(frozen=True)
class Site:
    TAG: ClassVar[str] = 'site'

    id: Optional[str] = xml_attr('id')
    name: Optional[str] = xml_attr('name')
    content_url: Optional[str] = xml_attr('contentUrl')
    admin_mode: Optional[str] = xml_attr('adminMode')
    user_quota: Optional[str] = xml_attr('userQuota')
    storage_quota: Optional[str] = xml_attr('storageQuota')
    state: Optional[str] = xml_attr('state')
    status_reason: Optional[str] = xml_attr('statusReason')
    num_users: Optional[str] = xml_attr('numUsers', child='usage')
    storage: Optional[str] = xml_attr('storage', child='usage')


@dataclass(frozen=True)
class Project:
    TAG: ClassVar[str] = 'project'

    id: Optional[str] = xml_attr('id')
    name: Optional[str] = xml_attr('name')
    description: Optional[str] = xml_attr('description')
    parent_project_id: Optional[str] = xml_attr('parentProjectId')
    content_permissions: Optional[str] = xml_attr('contentPermissions')
    owner_id: Optional[str] = xml_attr('id', child='owner')


@dataclass(frozen=True)
class Datasource:
    TAG: ClassVar[str] = 'datasource'

    id: Optional[str] = xml_attr('id')
    name: Optional[str] = xml_attr('name')
    type: Optional[str] = xml_attr('type')
    content_url: Optional[str] = xml_attr('contentUrl')
    created_at: Optional[str] = xml_attr('createdAt')
    updated_at: Optional[str] = xml_attr('updatedAt')
    project_id: Optional[str] = xml_attr('id', child='project')
    project_name: Optional[str] = xml_attr('name', child='project')
    owner_id: Optional[str] = xml_attr('id', child='owner')


@dataclass(frozen=True)
class User:
    TAG: ClassVar[str] = 'user'

    id: Optional[str] = xml_attr('id')
    name: Optional[str] = xml_attr('name')
    site_role: Optional[str] = xml_attr('siteRole')
    last_login: Optional[str] = xml_attr('lastLogin')
    full_name: Optional[str] = xml_attr('fullName')


@dataclass(frozen=True)
class Credentials:
    """Sign-in credentials. Built per sign-in call and discarded afterwards."""

    TAG: ClassVar[str] = 'credentials'

    name: Optional[str] = xml_attr('name')
    password: Optional[str] = xml_attr('password', repr=False)
    site_content_url: Optional[str] = xml_attr('contentUrl', child='site')
    impersonate_user_id: Optional[str] = xml_attr('id', child='user')


@dataclass(frozen=True)
class SignInResult:
    TAG: ClassVar[str] = 'credentials'

    token: Optional[str] = xml_attr('token', repr=False)
    site_id: Optional[str] = xml_attr('id', child='site')
    site_content_url: Optional[str] = xml_attr('contentUrl', child='site')
    user_id: Optional[str] = xml_attr('id', child='user')


@dataclass(frozen=True)
class ServerInfo:
    product_version: Optional[str] = None
    build: Optional[str] = None
    rest_api_version: Optional[str] = None


@dataclass
class APISession:
    """
    Connection state for one client.

    The auth token is set by a successful sign-in and attached to every
    later request until replaced. Not safe to share between threads that
    may sign in concurrently.
    """

    server: str
    version: str
    default_site_name: str = DEFAULT_SITE_NAME
    omit_default_site_name: bool = True
    auth_token: Optional[str] = field(default=None, repr=False)
    site_id: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        self.server = self.server.strip().rstrip('/')

    @property
    def signed_in(self) -> bool:
        return bool(self.auth_token)

    def api_url(self, path: str, version: Optional[str] = None) -> str:
        """Build ``{server}/api/{version}/{path}``."""
        return f"{self.server}/api/{version or self.version}/{path}"
