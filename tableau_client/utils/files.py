"""
Utility functions for Tableau API Client.
Datasource file checks and small formatting helpers.
"""

from pathlib import Path

from tableau_client.core.logger import get_logger


DATASOURCE_SUFFIXES = {'.tds': 'tds', '.tdsx': 'tdsx', '.hyper': 'hyper', '.tde': 'tde'}


class DatasourceFileError(Exception):
    """Raised when a datasource file cannot be published."""
    pass


def datasource_type_for(file_path: Path) -> str:
    """
    Map a file suffix to the datasourceType query value.

    Raises:
        DatasourceFileError: Unknown suffix
    """
    try:
        return DATASOURCE_SUFFIXES[file_path.suffix.lower()]
    except KeyError:
        raise DatasourceFileError(
            f"Unsupported datasource file type '{file_path.suffix}': {file_path.name} "
            f"(expected one of {', '.join(sorted(DATASOURCE_SUFFIXES))})"
        )


def read_datasource_file(file_path: Path) -> bytes:
    """
    Read a datasource file for publishing.

    A .tds file is a plain XML document, so its first line is checked for
    markup; packaged formats are passed through as raw bytes.

    Args:
        file_path: Path to the datasource file

    Returns:
        File contents

    Raises:
        DatasourceFileError: Missing, unreadable or not XML (.tds only)
    """
    logger = get_logger()

    if not file_path.exists():
        raise DatasourceFileError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise DatasourceFileError(f"Not a file: {file_path}")

    datasource_type = datasource_type_for(file_path)

    try:
        content = file_path.read_bytes()
    except OSError as e:
        raise DatasourceFileError(f"Error reading file {file_path}: {e}")

    if datasource_type == 'tds':
        first_line = content.lstrip(b'\xef\xbb\xbf').lstrip().split(b'\n', 1)[0]
        if not first_line.startswith(b'<'):
            raise DatasourceFileError(f"File does not appear to be XML: {file_path}")

    logger.debug(f"Read {datasource_type} file {file_path} ({get_file_size_mb(file_path):.2f} MB)")
    return content


def get_file_size_mb(file_path: Path) -> float:
    """
    Get file size in megabytes.

    Args:
        file_path: Path to file

    Returns:
        File size in MB
    """
    try:
        return file_path.stat().st_size / 1024 / 1024
    except OSError:
        return 0.0


def format_duration(seconds: float) -> str:
    """
    Format duration in human-readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
