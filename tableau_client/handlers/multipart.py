"""
Multipart body builder for Tableau publish requests.

The publish endpoints take a ``multipart/mixed`` body whose parts carry
``Content-Disposition: name="..."`` headers (no ``form-data`` token):

    --BOUNDARY
    Content-Disposition: name="request_payload"
    Content-Type: text/xml

    <tsRequest>...</tsRequest>
    --BOUNDARY
    Content-Disposition: name="tableau_datasource"; filename="Sales.tds"
    Content-Type: application/octet-stream

    <raw file bytes>
    --BOUNDARY--
"""

import uuid
from typing import List, NamedTuple, Optional, Union


CRLF = b'\r\n'


class MultipartError(Exception):
    """Raised when a multipart body cannot be built."""
    pass


def _quoted(value: str) -> str:
    """Render a Content-Disposition parameter as an RFC 2616 quoted-string."""
    return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'


class Part(NamedTuple):
    name: str
    content: bytes
    content_type: str
    filename: Optional[str] = None


class MultipartBuilder:
    """Collects named parts and frames them with a boundary."""

    def __init__(self, boundary: Optional[str] = None, subtype: str = 'mixed'):
        self.boundary = boundary or uuid.uuid4().hex
        self.subtype = subtype
        self.parts: List[Part] = []

        if not 1 <= len(self.boundary) <= 70:
            raise MultipartError("Boundary must be 1 to 70 characters long")
        if any(ch in self.boundary for ch in '\r\n"'):
            raise MultipartError(f"Invalid character in boundary {self.boundary!r}")

    @property
    def content_type(self) -> str:
        """Value for the request's Content-Type header."""
        return f"multipart/{self.subtype}; boundary={self.boundary}"

    def add_part(self, name: str, content: Union[bytes, str], content_type: str,
                 filename: Optional[str] = None) -> 'MultipartBuilder':
        """
        Append a part.

        Args:
            name: Value of the Content-Disposition name parameter
            content: Part body; text is encoded as UTF-8
            content_type: Part Content-Type
            filename: Optional Content-Disposition filename parameter

        Returns:
            The builder, for chaining
        """
        if isinstance(content, str):
            content = content.encode('utf-8')

        for label, value in (('name', name), ('filename', filename)):
            if value is not None and any(ch in value for ch in '\r\n'):
                raise MultipartError(f"Invalid character in part {label} {value!r}")

        if self.boundary.encode('utf-8') in content:
            raise MultipartError(f"Part '{name}' contains the multipart boundary")

        self.parts.append(Part(name, content, content_type, filename))
        return self

    def build(self) -> bytes:
        """
        Render the framed body, ending with the terminal boundary.

        Raises:
            MultipartError: If no parts were added
        """
        if not self.parts:
            raise MultipartError("Multipart body needs at least one part")

        delimiter = b'--' + self.boundary.encode('utf-8')
        chunks = []
        for part in self.parts:
            disposition = f'Content-Disposition: name={_quoted(part.name)}'
            if part.filename is not None:
                disposition += f'; filename={_quoted(part.filename)}'

            chunks.append(delimiter + CRLF)
            chunks.append(disposition.encode('utf-8') + CRLF)
            chunks.append(f"Content-Type: {part.content_type}".encode('utf-8') + CRLF)
            chunks.append(CRLF)
            chunks.append(part.content + CRLF)

        chunks.append(delimiter + b'--' + CRLF)
        return b''.join(chunks)
