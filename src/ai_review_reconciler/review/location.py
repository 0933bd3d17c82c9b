"""
Location Parser

Parses the free-form location strings emitted by the analysis engine
into a file path and line range.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


GITHUB_URL_PATTERN = re.compile(r'^https?://github\.com/[^/]+/[^/]+/blob/[^/]+/(.+?)#L(\d+)(?:-L(\d+))?$')
ANCHOR_PATTERN = re.compile(r'^([^#]+)#L(\d+)(?:-L(\d+))?')
FILE_LINE_PATTERN = re.compile(r'^([^:]+):(\d+)(?:-(\d+))?')


@dataclass(frozen=True)
class LocationInfo:
    """File path and line range parsed from a location string"""
    file_path: Optional[str] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None

    @property
    def line_number(self) -> Optional[int]:
        """Comment line: the end of a range, else the single line."""
        return self.end_line or self.start_line

    @property
    def is_empty(self) -> bool:
        return self.file_path is None

    @property
    def is_multi_line(self) -> bool:
        return bool(self.start_line and self.end_line and self.start_line != self.end_line)

    @property
    def line_range(self) -> Optional[Tuple[int, int]]:
        if self.start_line is None:
            return None
        return self.start_line, self.end_line or self.start_line


def parse_location(location: str) -> LocationInfo:
    """
    Parse a location string.

    Supported forms:
        src/app.py:45
        src/app.py:12-18
        README.md#L25-L30
        https://github.com/owner/repo/blob/sha/src/index.ts#L129-L133

    A leading ``[`` is dropped and only the first of several
    comma-separated locations is used.

    Returns:
        LocationInfo, empty when nothing could be parsed
    """
    if not location or not isinstance(location, str):
        return LocationInfo()

    text = location.strip()
    if text.startswith('['):
        text = text[1:].rstrip(']')
    if ',' in text:
        first = text.split(',')[0].strip()
        if first:
            logger.debug(f"Multiple locations found, using first: {first}")
            text = first

    for pattern in (GITHUB_URL_PATTERN, ANCHOR_PATTERN, FILE_LINE_PATTERN):
        match = pattern.match(text)
        if match:
            file_path, start, end = match.groups()
            return LocationInfo(
                file_path=file_path.strip(),
                start_line=int(start),
                end_line=int(end) if end else None,
            )

    logger.debug(f"Failed to parse location: {location!r}")
    return LocationInfo()


def format_location(info: LocationInfo) -> str:
    """Render a LocationInfo in ``path#Lstart-Lend`` form."""
    if not info.file_path:
        return ""
    if info.is_multi_line:
        return f"{info.file_path}#L{info.start_line}-L{info.end_line}"
    if info.line_number:
        return f"{info.file_path}#L{info.line_number}"
    return info.file_path


def normalize_file_path(file_path: str) -> str:
    """Strip leading slashes, use forward slashes and collapse repeats."""
    normalized = file_path.replace('\\', '/').lstrip('/')
    return re.sub(r'/+', '/', normalized)


def are_locations_equal(first: LocationInfo, second: LocationInfo) -> bool:
    first_path = normalize_file_path(first.file_path) if first.file_path else ""
    second_path = normalize_file_path(second.file_path) if second.file_path else ""
    return (
        first_path == second_path
        and first.start_line == second.start_line
        and first.end_line == second.end_line
    )
