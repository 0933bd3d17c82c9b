"""
Unified Diff Parser

Parses unified diff text into a structured ParsedDiff.
Files matched by the ignore filter are dropped entirely and
malformed headers are skipped, so parsing never fails.
"""

import logging
import re
from collections import OrderedDict
from enum import Enum
from typing import List, Optional

from ..models.diff import DiffLine, DiffStats, Hunk, LineOrigin, ParsedDiff
from .ignore import IgnoreFilter


logger = logging.getLogger(__name__)


class ParserState(Enum):
    """Scanner state while walking the diff line by line."""
    SEEKING_FILE = "seeking_file"
    IN_FILE = "in_file"
    IN_HUNK = "in_hunk"
    SKIPPING_FILE = "skipping_file"


class DiffParser:
    """
    Parser for unified diff text as produced by ``git diff``.

    Keeps an explicit ParserState instead of loose flags so a line can
    never be attributed to a file that is being skipped.
    """

    FILE_HEADER_PREFIX = 'diff --git'
    HUNK_HEADER_PREFIX = '@@'
    NO_NEWLINE_MARKER = '\\'

    def __init__(self, ignore_filter: Optional[IgnoreFilter] = None):
        """
        Initialize diff parser.

        Args:
            ignore_filter: Optional filter; matching files never reach the result
        """
        self.ignore_filter = ignore_filter
        self.file_header_pattern = re.compile(r'^diff --git "?a/(.*?)"? "?b/(.+?)"?$')
        self.hunk_header_pattern = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s*@@(.*)$')

    def parse(self, diff_text: str) -> ParsedDiff:
        """
        Parse diff text into a ParsedDiff.

        Args:
            diff_text: Full unified diff, may be empty or malformed

        Returns:
            ParsedDiff keyed by new-side file path in diff order
        """
        files: "OrderedDict[str, List[Hunk]]" = OrderedDict()
        if not diff_text or not diff_text.strip():
            logger.debug("Empty diff content")
            return ParsedDiff(files=files)

        lines = self._split_lines(diff_text)
        state = ParserState.SEEKING_FILE
        current_file: Optional[str] = None
        current_hunk: Optional[Hunk] = None
        skipped_files = 0

        logger.debug(f"Parsing diff content with {len(lines)} lines")

        for line in lines:
            if line.startswith(self.FILE_HEADER_PREFIX):
                self._close_hunk(current_hunk)
                current_hunk = None

                file_path = self._parse_file_header(line)
                if file_path is None:
                    logger.warning(f"Failed to parse git diff header: {line}")
                    state = ParserState.SEEKING_FILE
                    current_file = None
                elif self.ignore_filter and self.ignore_filter.should_ignore(file_path):
                    logger.debug(f"Skipping ignored file: {file_path}")
                    skipped_files += 1
                    state = ParserState.SKIPPING_FILE
                    current_file = None
                else:
                    logger.debug(f"Found file in diff: {file_path}")
                    files.setdefault(file_path, [])
                    state = ParserState.IN_FILE
                    current_file = file_path
                continue

            if state in (ParserState.SKIPPING_FILE, ParserState.SEEKING_FILE):
                if line.startswith(self.HUNK_HEADER_PREFIX) and state is ParserState.SEEKING_FILE:
                    logger.warning(f"Hunk header outside of any file, skipping: {line}")
                continue

            if line.startswith(self.HUNK_HEADER_PREFIX):
                self._close_hunk(current_hunk)
                current_hunk = self._parse_hunk_header(line, current_file)
                if current_hunk is None:
                    logger.warning(f"Failed to parse hunk header: {line}")
                    state = ParserState.IN_FILE
                else:
                    files[current_file].append(current_hunk)
                    state = ParserState.IN_HUNK
                continue

            if state is ParserState.IN_HUNK:
                self._append_line(current_hunk, line)
            # extended header lines (index, mode, ---/+++) carry no hunk content

        self._close_hunk(current_hunk)

        parsed = ParsedDiff(files=files)
        logger.info(
            f"Diff parsing complete: {len(parsed)} files, {parsed.total_hunks} hunks "
            f"({skipped_files} ignored files skipped)"
        )
        return parsed

    @staticmethod
    def _split_lines(diff_text: str) -> List[str]:
        """
        Split on ``\\n`` only, dropping one trailing ``\\r`` per line.

        Form feeds, ``\\u2028`` and other separators are line content in source files.
        """
        lines = diff_text.split('\n')
        if lines and lines[-1] == '':
            lines.pop()
        return [line[:-1] if line.endswith('\r') else line for line in lines]

    def _parse_file_header(self, line: str) -> Optional[str]:
        match = self.file_header_pattern.match(line)
        if not match or not match.group(2):
            return None
        return match.group(2)

    def _parse_hunk_header(self, line: str, file_path: str) -> Optional[Hunk]:
        match = self.hunk_header_pattern.match(line)
        if not match:
            return None

        # omitted counts default to 1
        old_start = int(match.group(1))
        old_lines = int(match.group(2)) if match.group(2) is not None else 1
        new_start = int(match.group(3))
        new_lines = int(match.group(4)) if match.group(4) is not None else 1

        logger.debug(f"Found hunk for {file_path}: lines {new_start}-{new_start + new_lines - 1}")
        return Hunk(
            file_path=file_path,
            old_start=old_start,
            old_line_count=old_lines,
            new_start=new_start,
            new_line_count=new_lines,
        )

    def _append_line(self, hunk: Hunk, line: str) -> None:
        if line.startswith(self.NO_NEWLINE_MARKER):
            return
        if line[:1] in ('+', '-', ' '):
            hunk.lines.append(DiffLine.from_raw(line))
            return
        # unprefixed lines are context only while the header still expects lines
        if self._expects_more_lines(hunk):
            hunk.lines.append(DiffLine(LineOrigin.CONTEXT, line))
        elif line:
            logger.debug(f"Ignoring line past end of hunk in {hunk.file_path}: {line}")

    @staticmethod
    def _expects_more_lines(hunk: Hunk) -> bool:
        new_side = sum(1 for l in hunk.lines if l.origin.occupies_new_side)
        old_side = sum(1 for l in hunk.lines if l.origin.occupies_old_side)
        return new_side < hunk.new_line_count and old_side < hunk.old_line_count

    @staticmethod
    def _close_hunk(hunk: Optional[Hunk]) -> None:
        if hunk is not None and not hunk.is_consistent():
            logger.warning(
                f"Hunk {hunk.new_start},{hunk.new_line_count} in {hunk.file_path} does not match "
                f"its header: +{hunk.added_count} -{hunk.removed_count} ~{hunk.context_count}"
            )

    def filter_diff_content(self, diff_text: str) -> str:
        """
        Remove the sections of ignored files from raw diff text.

        Args:
            diff_text: Raw unified diff

        Returns:
            Diff text without ignored files, other lines untouched
        """
        if not self.ignore_filter or not diff_text:
            return diff_text

        lines = diff_text.split('\n')
        kept = []
        skipping = False

        for line in lines:
            if line.startswith(self.FILE_HEADER_PREFIX):
                file_path = self._parse_file_header(line)
                skipping = file_path is not None and self.ignore_filter.should_ignore(file_path)
                if skipping:
                    logger.debug(f"Filtering out ignored file from diff: {file_path}")
                    continue
            if not skipping:
                kept.append(line)

        logger.info(f"Diff filtering complete: {len(lines)} -> {len(kept)} lines")
        return '\n'.join(kept)

    @staticmethod
    def get_diff_stats(parsed_diff: ParsedDiff) -> DiffStats:
        """Count files, hunks and changed lines of a parsed diff."""
        added = 0
        removed = 0
        for hunks in parsed_diff.files.values():
            for hunk in hunks:
                added += hunk.added_count
                removed += hunk.removed_count

        return DiffStats(
            file_count=len(parsed_diff),
            total_hunks=parsed_diff.total_hunks,
            added_lines=added,
            removed_lines=removed,
            modified_files=parsed_diff.file_paths,
        )

    @staticmethod
    def validate_diff_content(diff_text: str) -> bool:
        """Check that the text looks like a git diff with at least one hunk."""
        if not diff_text or not diff_text.strip():
            logger.warning("Diff content is empty")
            return False
        if 'diff --git' not in diff_text:
            logger.warning("Diff content does not contain git diff headers")
            return False
        if '@@' not in diff_text:
            logger.warning("Diff content does not contain hunk headers")
            return False
        return True


def parse_diff(diff_text: str, ignore_filter: Optional[IgnoreFilter] = None) -> ParsedDiff:
    """Parse diff text, dropping files matched by the ignore filter."""
    return DiffParser(ignore_filter).parse(diff_text)
