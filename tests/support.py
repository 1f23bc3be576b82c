"""Sample Tableau responses and a minimal multipart reader for tests."""

from typing import Dict, List, Tuple


SERVER = 'http://tableau.test'
TOKEN = '12ab34cd56ef78ab90cd12ef34ab56cd'
SITE_ID = '9a8b7c6d-5e4f-3a2b-1c0d-9e8f7a6b5c4d'
USER_ID = '9f9e9d9c-8b8a-8f8e-7d7c-7b7a6f6d6e6c'

_HEADER = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<tsResponse xmlns="http://tableau.com/api" '
    b'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    b'xsi:schemaLocation="http://tableau.com/api http://tableau.com/api/ts-api-2.3.xsd">\n'
)
_FOOTER = b'\n</tsResponse>'


def ts_response(inner: bytes) -> bytes:
    return _HEADER + inner + _FOOTER


SIGNIN_RESPONSE = ts_response(
    b'<credentials token="' + TOKEN.encode() + b'">'
    b'<site id="' + SITE_ID.encode() + b'" contentUrl="sales"/>'
    b'<user id="' + USER_ID.encode() + b'"/>'
    b'</credentials>'
)

PROJECTS_RESPONSE = ts_response(b'''
  <pagination pageNumber="1" pageSize="100" totalAvailable="3"/>
  <projects>
    <project id="1f2f3f4f-0000-0000-0000-000000000001" name="default"
             description="The default project" contentPermissions="ManagedByOwner"/>
    <project id="1f2f3f4f-0000-0000-0000-000000000002" name="Sales"
             description="Sales dashboards" contentPermissions="LockedToProject">
      <owner id="9f9e9d9c-8b8a-8f8e-7d7c-7b7a6f6d6e6c"/>
    </project>
    <project id="1f2f3f4f-0000-0000-0000-000000000003" name="Sales Archive"/>
  </projects>''')

SITES_RESPONSE = ts_response(b'''
  <pagination pageNumber="1" pageSize="100" totalAvailable="2"/>
  <sites>
    <site id="aaaaaaaa-0000-0000-0000-000000000001" name="Default" contentUrl=""
          adminMode="ContentAndUsers" state="Active"/>
    <site id="aaaaaaaa-0000-0000-0000-000000000002" name="Marketing Team" contentUrl="marketing"
          adminMode="ContentOnly" userQuota="50" state="Active"/>
  </sites>''')

SITE_WITH_USAGE_RESPONSE = ts_response(b'''
  <site id="aaaaaaaa-0000-0000-0000-000000000002" name="Marketing Team" contentUrl="marketing"
        adminMode="ContentOnly" userQuota="50" storageQuota="1024" state="Active">
    <usage numUsers="12" storage="340"/>
  </site>''')

DATASOURCES_RESPONSE = ts_response(b'''
  <pagination pageNumber="1" pageSize="100" totalAvailable="2"/>
  <datasources>
    <datasource id="dddddddd-0000-0000-0000-000000000001" name="Sales Data" type="sqlserver"
                contentUrl="SalesData" createdAt="2016-08-04T17:56:41Z" updatedAt="2016-08-04T17:56:41Z">
      <project id="1f2f3f4f-0000-0000-0000-000000000002" name="Sales"/>
      <owner id="9f9e9d9c-8b8a-8f8e-7d7c-7b7a6f6d6e6c"/>
    </datasource>
    <datasource id="dddddddd-0000-0000-0000-000000000002" name="Inventory" type="postgres"/>
  </datasources>''')

DATASOURCE_RESPONSE = ts_response(b'''
  <datasource id="dddddddd-0000-0000-0000-000000000009" name="Sales Data" type="sqlserver"
              contentUrl="SalesData">
    <project id="1f2f3f4f-0000-0000-0000-000000000002" name="Sales"/>
    <owner id="9f9e9d9c-8b8a-8f8e-7d7c-7b7a6f6d6e6c"/>
  </datasource>''')

PROJECT_CREATED_RESPONSE = ts_response(
    b'<project id="1f2f3f4f-0000-0000-0000-000000000004" name="Finance" '
    b'description="Quarterly numbers" contentPermissions="ManagedByOwner"/>'
)

SITE_CREATED_RESPONSE = ts_response(
    b'<site id="aaaaaaaa-0000-0000-0000-000000000003" name="Research" contentUrl="research" '
    b'adminMode="ContentAndUsers" state="Active"/>'
)

USER_RESPONSE = ts_response(
    b'<user id="' + USER_ID.encode() + b'" name="jsmith" siteRole="Publisher" '
    b'lastLogin="2016-08-04T17:56:41Z" fullName="J. Smith"/>'
)

SERVER_INFO_RESPONSE = ts_response(b'''
  <serverInfo>
    <productVersion build="10000.16.0701.1300">10.0</productVersion>
    <restApiVersion>2.4</restApiVersion>
  </serverInfo>''')

ERROR_RESPONSE = ts_response(b'''
  <error code="401002">
    <summary>Signin Error</summary>
    <detail>Error signing in to Tableau Server</detail>
  </error>''')

NOT_FOUND_RESPONSE = ts_response(b'''
  <error code="404000">
    <summary>Resource Not Found</summary>
    <detail>Site 'nope' could not be found.</detail>
  </error>''')


def split_multipart(body: bytes, boundary: str) -> List[Tuple[Dict[str, str], bytes]]:
    """
    Split a framed multipart body back into (headers, content) pairs.

    Fails if the body does not open with a delimiter or lacks the
    terminal ``--boundary--`` line.
    """
    delimiter = b'--' + boundary.encode('utf-8')
    terminal = delimiter + b'--\r\n'
    assert body.startswith(delimiter + b'\r\n'), 'body must open with the boundary'
    assert body.endswith(terminal), 'body must end with the terminal boundary'

    sections = body[:-len(terminal)].split(delimiter + b'\r\n')
    assert sections[0] == b''

    parts = []
    for section in sections[1:]:
        assert section.endswith(b'\r\n')
        head, separator, content = section[:-2].partition(b'\r\n\r\n')
        assert separator, 'part headers must end with a blank line'
        headers = dict(line.split(': ', 1) for line in head.decode('utf-8').split('\r\n'))
        parts.append((headers, content))
    return parts
