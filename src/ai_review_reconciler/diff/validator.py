"""
Line-in-Diff Validator

Decides whether a file/line pair is a legitimate target for an
inline review comment, i.e. whether the line exists on the new
side of one of the diff's hunks.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..models.diff import ParsedDiff
from ..models.issue import Issue


logger = logging.getLogger(__name__)


def _strip_leading_slashes(path: str) -> str:
    return path.lstrip('/')


def _is_path_suffix(path: str, suffix: str) -> bool:
    return path == suffix or path.endswith('/' + suffix)


def resolve_file_path(file_path: str, parsed_diff: ParsedDiff) -> Optional[str]:
    """
    Find the diff key for a file path.

    Exact lookup first; otherwise both sides are stripped of leading
    slashes and a key is accepted when it equals the query or one is a
    path-suffix of the other, which tolerates differing repository-root
    prefixes between the issue producer and the diff source.

    Returns:
        Matching key of parsed_diff.files, or None
    """
    if not file_path:
        return None
    if file_path in parsed_diff.files:
        return file_path

    query = _strip_leading_slashes(file_path)
    if not query:
        return None

    for candidate in parsed_diff.files:
        normalized = _strip_leading_slashes(candidate)
        if _is_path_suffix(normalized, query) or _is_path_suffix(query, normalized):
            logger.debug(f"Found matching file: {candidate} for {file_path}")
            return candidate

    logger.debug(f"No matching file found for: {file_path}")
    return None


def is_line_in_diff(file_path: str, line_number: int, parsed_diff: ParsedDiff) -> bool:
    """
    Check whether a line can receive an inline comment.

    Args:
        file_path: Path as reported by the issue producer
        line_number: New-side line number
        parsed_diff: Parsed diff of the change set

    Returns:
        True if the line is an added or context line of some hunk
    """
    if parsed_diff is None or not file_path or not isinstance(line_number, int) or line_number <= 0:
        return False

    matched = resolve_file_path(file_path, parsed_diff)
    if matched is None:
        return False

    for hunk in parsed_diff.files[matched]:
        if not hunk.covers_new_line(line_number):
            continue
        for new_line, _ in hunk.new_side_lines():
            if new_line == line_number:
                return True
            if new_line > line_number:
                break

    logger.debug(f"Line {line_number} not found in any diff hunk for {file_path}")
    return False


class LineInDiffValidator:
    """
    Validates issue locations against one parsed diff.

    Stateless apart from the diff it wraps; safe to call repeatedly.
    """

    def __init__(self, parsed_diff: ParsedDiff):
        self.parsed_diff = parsed_diff

    def resolve_file_path(self, file_path: str) -> Optional[str]:
        return resolve_file_path(file_path, self.parsed_diff)

    def is_line_in_diff(self, file_path: str, line_number: int) -> bool:
        return is_line_in_diff(file_path, line_number, self.parsed_diff)

    def is_issue_commentable(self, issue: Issue) -> bool:
        """An issue is commentable when its file and comment line lie in the diff."""
        if not issue.file_path or issue.line_number is None:
            return False
        return self.is_line_in_diff(issue.file_path, issue.line_number)

    def partition_issues(self, issues: Iterable[Issue]) -> Tuple[List[Issue], List[Issue]]:
        """
        Split issues by whether they can be placed as inline comments.

        Returns:
            Tuple of (commentable, not_commentable), each in input order
        """
        commentable = []
        rejected = []
        for issue in issues:
            if self.is_issue_commentable(issue):
                commentable.append(issue)
            else:
                logger.info(f"Issue {issue.id} at {issue.file_path}:{issue.line_number} is outside the diff")
                rejected.append(issue)
        return commentable, rejected
