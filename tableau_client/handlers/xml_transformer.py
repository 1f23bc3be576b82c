"""
XML transformation module for Tableau API Client.
Serializes request records into tsRequest documents and parses
tsResponse documents back into records.
"""

from dataclasses import fields
from typing import Dict, List, Optional, Type, TypeVar, Union
from lxml import etree

from tableau_client.core.models import (
    Credentials,
    Datasource,
    Project,
    ServerInfo,
    SignInResult,
    Site,
    User,
)


Record = TypeVar('Record')


class XMLTransformError(Exception):
    """Raised when XML serialization or parsing fails."""
    pass


def _to_text(value) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _strip_namespaces(root: etree._Element) -> None:
    """Rename every element to its local name so lookups ignore xmlns."""
    for element in root.iter():
        if isinstance(element.tag, str):
            element.tag = etree.QName(element).localname
    etree.cleanup_namespaces(root)


class XMLTransformer:
    """
    Converts between vendor-schema records and XML documents.

    Requests are wrapped in ``<tsRequest>``; responses are expected inside
    ``<tsResponse>``, with or without the ``http://tableau.com/api``
    default namespace.
    """

    def __init__(self):
        """Initialize XML transformer."""
        self.logger = None
        self._parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            remove_blank_text=True,
        )

    def _get_logger(self):
        """Lazy logger initialization."""
        if self.logger is None:
            from tableau_client.core.logger import get_logger
            self.logger = get_logger()
        return self.logger

    # Serialization

    def record_to_element(self, record, tag: Optional[str] = None) -> etree._Element:
        """
        Build the element for a record, skipping fields that are None.

        Args:
            record: A record instance from tableau_client.core.models
            tag: Element name, defaults to the record's TAG

        Returns:
            lxml element
        """
        element = etree.Element(tag or record.TAG)
        children: Dict[str, etree._Element] = {}

        for f in fields(record):
            attribute = f.metadata.get('xml')
            if attribute is None:
                continue
            value = getattr(record, f.name)
            if value is None:
                continue

            child = f.metadata.get('child')
            if child is None:
                target = element
            else:
                target = children.get(child)
                if target is None:
                    target = children[child] = etree.SubElement(element, child)
            target.set(attribute, _to_text(value))

        return element

    def request_xml(self, record) -> bytes:
        """Serialize a record as ``<tsRequest><record .../></tsRequest>``."""
        try:
            root = etree.Element('tsRequest')
            root.append(self.record_to_element(record))
            return etree.tostring(root, encoding='UTF-8', xml_declaration=False)
        except (TypeError, ValueError) as e:
            raise XMLTransformError(f"Failed to serialize {type(record).__name__}: {e}")

    def signin_request(self, credentials: Credentials) -> bytes:
        return self.request_xml(credentials)

    def project_request(self, project: Project) -> bytes:
        return self.request_xml(project)

    def site_request(self, site: Site) -> bytes:
        return self.request_xml(site)

    def datasource_request(self, datasource: Datasource) -> bytes:
        return self.request_xml(datasource)

    # Parsing

    def parse(self, body: Union[bytes, str]) -> etree._Element:
        """
        Parse a response body into a namespace-free element tree.

        Raises:
            XMLTransformError: If the body is empty or not well-formed XML
        """
        if isinstance(body, str):
            body = body.encode('utf-8')
        if not body or not body.strip():
            raise XMLTransformError("Empty XML document")

        try:
            root = etree.fromstring(body, self._parser)
        except etree.XMLSyntaxError as e:
            raise XMLTransformError(f"XML parsing error: {e}")

        _strip_namespaces(root)
        return root

    def record_from_element(self, cls: Type[Record], element: etree._Element) -> Record:
        """Build a record of type ``cls`` from its element."""
        values = {}
        for f in fields(cls):
            attribute = f.metadata.get('xml')
            if attribute is None:
                continue
            child = f.metadata.get('child')
            source = element if child is None else element.find(child)
            if source is not None:
                values[f.name] = source.get(attribute)
        return cls(**values)

    def parse_record(self, body: Union[bytes, str], cls: Type[Record]) -> Record:
        """
        Parse a response holding a single record element.

        Raises:
            XMLTransformError: If the body is malformed or lacks the element
        """
        root = self.parse(body)
        element = root if root.tag == cls.TAG else root.find(cls.TAG)
        if element is None:
            raise XMLTransformError(
                f"Response has no <{cls.TAG}> element (root is <{root.tag}>)"
            )
        return self.record_from_element(cls, element)

    def parse_records(self, body: Union[bytes, str], cls: Type[Record],
                      container: str) -> List[Record]:
        """
        Parse a list response such as ``<tsResponse><projects><project/>...``.

        A response without the container element yields an empty list.
        """
        root = self.parse(body)
        parent = root if root.tag == container else root.find(container)
        if parent is None:
            self._get_logger().debug(f"No <{container}> element in response")
            return []
        return [self.record_from_element(cls, element) for element in parent.findall(cls.TAG)]

    def parse_signin(self, body: Union[bytes, str]) -> SignInResult:
        result = self.parse_record(body, SignInResult)
        if not result.token:
            raise XMLTransformError("Sign-in response carries no token")
        return result

    def parse_site(self, body: Union[bytes, str]) -> Site:
        return self.parse_record(body, Site)

    def parse_sites(self, body: Union[bytes, str]) -> List[Site]:
        return self.parse_records(body, Site, 'sites')

    def parse_project(self, body: Union[bytes, str]) -> Project:
        return self.parse_record(body, Project)

    def parse_projects(self, body: Union[bytes, str]) -> List[Project]:
        return self.parse_records(body, Project, 'projects')

    def parse_datasource(self, body: Union[bytes, str]) -> Datasource:
        return self.parse_record(body, Datasource)

    def parse_datasources(self, body: Union[bytes, str]) -> List[Datasource]:
        return self.parse_records(body, Datasource, 'datasources')

    def parse_user(self, body: Union[bytes, str]) -> User:
        return self.parse_record(body, User)

    def parse_server_info(self, body: Union[bytes, str]) -> ServerInfo:
        """
        Parse ``<serverInfo>``; versions are element text, not attributes.
        """
        root = self.parse(body)
        info = root if root.tag == 'serverInfo' else root.find('serverInfo')
        if info is None:
            raise XMLTransformError("Response has no <serverInfo> element")

        product = info.find('productVersion')
        rest_api = info.find('restApiVersion')
        return ServerInfo(
            product_version=product.text.strip() if product is not None and product.text else None,
            build=product.get('build') if product is not None else None,
            rest_api_version=rest_api.text.strip() if rest_api is not None and rest_api.text else None,
        )

    def parse_error(self, body: Union[bytes, str]) -> Dict[str, Optional[str]]:
        """
        Parse the ``<tsResponse><error code=".."><summary/><detail/></error>`` envelope.

        Returns:
            Dict with code, summary and detail (None when absent)

        Raises:
            XMLTransformError: If the body is not well-formed XML
        """
        root = self.parse(body)
        error = root if root.tag == 'error' else root.find('error')
        if error is None:
            self._get_logger().warning(f"Error response has no <error> element (root is <{root.tag}>)")
            return {'code': None, 'summary': None, 'detail': None}

        summary = error.find('summary')
        detail = error.find('detail')
        return {
            'code': error.get('code'),
            'summary': summary.text.strip() if summary is not None and summary.text else None,
            'detail': detail.text.strip() if detail is not None and detail.text else None,
        }

    def pretty_print(self, xml_content: Union[bytes, str]) -> str:
        """
        Pretty print XML content for debug logging.

        Args:
            xml_content: XML content to format

        Returns:
            Formatted XML string, or the input decoded as-is if it does not parse
        """
        if isinstance(xml_content, bytes):
            text = xml_content.decode('utf-8', errors='replace')
        else:
            text = xml_content
        try:
            root = etree.fromstring(text.encode('utf-8'), self._parser)
            return etree.tostring(root, encoding='unicode', pretty_print=True)
        except etree.XMLSyntaxError:
            return text
