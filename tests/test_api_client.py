import pytest
from lxml import etree

from tableau_client.core.models import Datasource, Project, Site
from tableau_client.handlers.api_client import TableauAPI
from tableau_client.handlers.dispatcher import (
    AUTH_HEADER,
    DoesNotExistError,
    ResourceNotFoundError,
    ServerError,
)
from tests.support import (
    DATASOURCE_RESPONSE,
    DATASOURCES_RESPONSE,
    ERROR_RESPONSE,
    NOT_FOUND_RESPONSE,
    PROJECT_CREATED_RESPONSE,
    PROJECTS_RESPONSE,
    SERVER,
    SERVER_INFO_RESPONSE,
    SIGNIN_RESPONSE,
    SITE_CREATED_RESPONSE,
    SITE_ID,
    SITE_WITH_USAGE_RESPONSE,
    SITES_RESPONSE,
    TOKEN,
    USER_ID,
    USER_RESPONSE,
    split_multipart,
)


BASE = f"{SERVER}/api/2.3"


def sent_credentials(request):
    return etree.fromstring(request.body).find('credentials')


def test_signin_stores_token_and_later_calls_carry_it(api, adapter):
    adapter.queue(200, SIGNIN_RESPONSE).queue(200, PROJECTS_RESPONSE)

    result = api.signin('admin', 'pw', 'sales')

    signin = adapter.requests[0]
    assert signin.method == 'POST'
    assert signin.url == f"{BASE}/auth/signin"
    assert signin.headers['Content-Type'] == 'application/xml'
    assert AUTH_HEADER not in signin.headers
    credentials = sent_credentials(signin)
    assert credentials.get('name') == 'admin'
    assert credentials.get('password') == 'pw'
    assert credentials.find('site').get('contentUrl') == 'sales'

    assert result.token == TOKEN
    assert api.auth_token == TOKEN
    assert api.session.site_id == SITE_ID
    assert api.session.user_id == USER_ID

    projects = api.query_projects(api.session.site_id)
    assert adapter.last.url == f"{BASE}/sites/{SITE_ID}/projects"
    assert adapter.last.headers[AUTH_HEADER] == TOKEN
    assert len(projects) == 3


def test_signin_blanks_default_site_name(api, adapter):
    adapter.queue(200, SIGNIN_RESPONSE)
    api.signin('admin', 'pw', 'Default')
    assert sent_credentials(adapter.last).find('site').get('contentUrl') == ''


def test_signin_keeps_default_site_name_when_not_omitting(http, adapter):
    api = TableauAPI(SERVER, '2.3', default_site_name='Main', omit_default_site_name=False, http=http)
    adapter.queue(200, SIGNIN_RESPONSE)

    api.signin('admin', 'pw', 'Main')

    assert sent_credentials(adapter.last).find('site').get('contentUrl') == 'Main'


def test_signin_with_impersonation(api, adapter):
    adapter.queue(200, SIGNIN_RESPONSE)
    api.signin('admin', 'pw', '', user_id_to_impersonate=USER_ID)
    assert sent_credentials(adapter.last).find('user').get('id') == USER_ID


def test_failed_signin_leaves_session_signed_out(api, adapter):
    adapter.queue(401, ERROR_RESPONSE)

    with pytest.raises(ServerError) as excinfo:
        api.signin('admin', 'wrong', '')

    assert excinfo.value.code == '401002'
    assert api.auth_token is None
    assert not api.session.signed_in


def test_signout_keeps_local_token(api, adapter):
    adapter.queue(200, SIGNIN_RESPONSE).queue(204, b'')
    api.signin('admin', 'pw')

    api.signout()

    assert adapter.last.url == f"{BASE}/auth/signout"
    assert adapter.last.method == 'POST'
    assert adapter.last.headers[AUTH_HEADER] == TOKEN
    assert api.auth_token == TOKEN


def test_server_info_uses_fixed_api_version(api, adapter):
    adapter.queue(200, SERVER_INFO_RESPONSE)

    info = api.server_info()

    assert adapter.last.url == f"{SERVER}/api/2.4/serverinfo"
    assert info.rest_api_version == '2.4'


def test_query_sites(api, adapter):
    adapter.queue(200, SITES_RESPONSE)
    sites = api.query_sites()
    assert adapter.last.url == f"{BASE}/sites/"
    assert [s.content_url for s in sites] == ['', 'marketing']


@pytest.mark.parametrize('include_storage, suffix', [(False, ''), (True, '?includeStorage=true')])
def test_query_site(api, adapter, include_storage, suffix):
    adapter.queue(200, SITE_WITH_USAGE_RESPONSE)
    site = api.query_site('site-1', include_storage=include_storage)
    assert adapter.last.url == f"{BASE}/sites/site-1{suffix}"
    assert site.name == 'Marketing Team'


def test_query_site_by_name_scans_list(api, adapter):
    adapter.queue(200, SITES_RESPONSE)
    site = api.query_site_by_name('Marketing Team')
    assert site.id == 'aaaaaaaa-0000-0000-0000-000000000002'
    assert len(adapter.requests) == 1


def test_query_site_by_name_with_storage_rereads_site(api, adapter):
    adapter.queue(200, SITES_RESPONSE).queue(200, SITE_WITH_USAGE_RESPONSE)

    site = api.query_site_by_name('Marketing Team', include_storage=True)

    assert adapter.last.url == f"{BASE}/sites/aaaaaaaa-0000-0000-0000-000000000002?includeStorage=true"
    assert site.num_users == '12'


def test_query_site_by_content_url(api, adapter):
    adapter.queue(200, SITES_RESPONSE)
    assert api.query_site_by_content_url('marketing').name == 'Marketing Team'


def test_query_site_by_name_not_found(api, adapter):
    adapter.queue(200, SITES_RESPONSE)

    with pytest.raises(ResourceNotFoundError) as excinfo:
        api.query_site_by_name('marketing team')

    assert str(excinfo.value) == "Site Named 'marketing team' Not Found"
    assert excinfo.value.key == 'name'


def test_get_site_id(api, adapter):
    adapter.queue(200, SITES_RESPONSE)
    assert api.get_site_id('Default') == 'aaaaaaaa-0000-0000-0000-000000000001'


def test_create_site(api, adapter):
    adapter.queue(201, SITE_CREATED_RESPONSE)

    site = api.create_site(Site(name='Research', content_url='research', admin_mode='ContentAndUsers'))

    assert adapter.last.url == f"{BASE}/sites"
    sent = etree.fromstring(adapter.last.body).find('site')
    assert dict(sent.attrib) == {'name': 'Research', 'contentUrl': 'research', 'adminMode': 'ContentAndUsers'}
    assert site.id == 'aaaaaaaa-0000-0000-0000-000000000003'


def test_query_user_on_site(api, adapter):
    adapter.queue(200, USER_RESPONSE)

    user = api.query_user_on_site(SITE_ID, USER_ID)

    assert adapter.last.url == f"{BASE}/sites/{SITE_ID}/users/{USER_ID}"
    assert user.site_role == 'Publisher'
    assert user.full_name == 'J. Smith'


def test_query_user_on_site_encodes_ids(api, adapter):
    adapter.queue(200, USER_RESPONSE)

    api.query_user_on_site('site/one', 'user#2')

    assert adapter.last.url == f"{BASE}/sites/site%2Fone/users/user%232"


def test_get_project_by_name_exact_match(api, adapter):
    adapter.queue(200, PROJECTS_RESPONSE)
    project = api.get_project_by_name(SITE_ID, 'Sales')
    assert project.id == '1f2f3f4f-0000-0000-0000-000000000002'


def test_get_project_by_name_not_found_names_key(api, adapter):
    adapter.queue(200, PROJECTS_RESPONSE)

    with pytest.raises(ResourceNotFoundError, match="Project Named 'Marketing' Not Found"):
        api.get_project_by_name(SITE_ID, 'Marketing')


def test_get_project_by_id(api, adapter):
    adapter.queue(200, PROJECTS_RESPONSE).queue(200, PROJECTS_RESPONSE)

    assert api.get_project_by_id(SITE_ID, '1f2f3f4f-0000-0000-0000-000000000003').name == 'Sales Archive'
    with pytest.raises(ResourceNotFoundError, match="Project with ID 'nope' Not Found"):
        api.get_project_by_id(SITE_ID, 'nope')


def test_create_project(api, adapter):
    adapter.queue(201, PROJECT_CREATED_RESPONSE)

    project = api.create_project(SITE_ID, Project(name='Finance', description='Quarterly numbers'))

    request = adapter.last
    assert request.url == f"{BASE}/sites/{SITE_ID}/projects"
    assert request.headers['Content-Type'] == 'application/xml'
    assert request.headers['Content-Length'] == str(len(request.body))
    sent = etree.fromstring(request.body).find('project')
    assert sent.get('name') == 'Finance'
    assert sent.get('description') == 'Quarterly numbers'
    assert project.id == '1f2f3f4f-0000-0000-0000-000000000004'


def test_query_datasources_and_lookup(api, adapter):
    adapter.queue(200, DATASOURCES_RESPONSE).queue(200, DATASOURCES_RESPONSE)

    datasources = api.query_datasources(SITE_ID)
    assert adapter.last.url == f"{BASE}/sites/{SITE_ID}/datasources"
    assert [d.name for d in datasources] == ['Sales Data', 'Inventory']
    assert api.get_datasource_by_name(SITE_ID, 'Inventory').type == 'postgres'


def test_publish_tds_frames_multipart_body(api, adapter):
    adapter.queue(201, DATASOURCE_RESPONSE)
    tds = '<?xml version="1.0"?>\n<datasource formatted-name="Sales Data" inline="true"/>\n'

    published = api.publish_tds(
        SITE_ID,
        Datasource(name='Sales Data', project_id='1f2f3f4f-0000-0000-0000-000000000002'),
        tds,
        overwrite=True,
    )

    request = adapter.last
    assert request.url == f"{BASE}/sites/{SITE_ID}/datasources?datasourceType=tds&overwrite=true"
    content_type = request.headers['Content-Type']
    assert content_type.startswith('multipart/mixed; boundary=')
    boundary = content_type.split('boundary=', 1)[1]

    (meta_headers, meta), (file_headers, content) = split_multipart(request.body, boundary)
    assert meta_headers['Content-Disposition'] == 'name="request_payload"'
    assert meta_headers['Content-Type'] == 'text/xml'
    datasource = etree.fromstring(meta).find('datasource')
    assert datasource.get('name') == 'Sales Data'
    assert datasource.find('project').get('id') == '1f2f3f4f-0000-0000-0000-000000000002'

    assert file_headers['Content-Disposition'] == 'name="tableau_datasource"; filename="Sales Data.tds"'
    assert file_headers['Content-Type'] == 'application/octet-stream'
    assert content == tds.encode('utf-8')

    assert published.id == 'dddddddd-0000-0000-0000-000000000009'
    assert published.project_name == 'Sales'


def test_publish_defaults_to_no_overwrite(api, adapter):
    adapter.queue(201, DATASOURCE_RESPONSE)
    api.publish_datasource(SITE_ID, Datasource(name='Extract'), b'\x00\x01binary', 'hyper')
    assert adapter.last.url.endswith('datasources?datasourceType=hyper&overwrite=false')
    assert b'filename="Extract.hyper"' in adapter.last.body


def test_publish_requires_name(api, adapter):
    with pytest.raises(ValueError):
        api.publish_tds(SITE_ID, Datasource(project_id='p'), '<datasource/>')
    assert adapter.requests == []


def test_delete_missing_site_is_does_not_exist(api, adapter):
    adapter.queue(404, NOT_FOUND_RESPONSE)

    with pytest.raises(DoesNotExistError):
        api.delete_site('no-such-site')

    assert adapter.last.method == 'DELETE'
    assert adapter.last.url == f"{BASE}/sites/no-such-site"


@pytest.mark.parametrize('call, path', [
    (lambda api: api.delete_site_by_name('Marketing Team'), 'sites/Marketing%20Team?key=name'),
    (lambda api: api.delete_site_by_content_url('marketing'), 'sites/marketing?key=contentUrl'),
    (lambda api: api.delete_project(SITE_ID, 'p-1'), f'sites/{SITE_ID}/projects/p-1'),
    (lambda api: api.delete_datasource(SITE_ID, 'd-1'), f'sites/{SITE_ID}/datasources/d-1'),
    (lambda api: api.delete_site('a/b'), 'sites/a%2Fb'),
    (lambda api: api.delete_project('a/b', 'p 1'), 'sites/a%2Fb/projects/p%201'),
    (lambda api: api.delete_datasource(SITE_ID, 'd/1?x'), f'sites/{SITE_ID}/datasources/d%2F1%3Fx'),
])
def test_delete_urls(api, adapter, call, path):
    adapter.queue(204, b'')
    assert call(api) is None
    assert adapter.last.method == 'DELETE'
    assert adapter.last.url == f"{BASE}/{path}"


def test_clients_do_not_share_tokens(http, adapter):
    first = TableauAPI(SERVER, '2.3', http=http)
    second = TableauAPI(SERVER, '2.3', http=http)
    adapter.queue(200, SIGNIN_RESPONSE)

    first.signin('admin', 'pw')

    assert first.auth_token == TOKEN
    assert second.auth_token is None
