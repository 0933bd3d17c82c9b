"""
Issue Extractor

Recovers the issue list and summary from raw analysis-engine output.
The engine is asked for a single JSON object but frequently wraps it in
code fences or surrounds it with commentary; the extractor repairs what
it can and treats anything unparsable as "no issues found".
"""

import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import ValidationError

from ..models.issue import Issue, IssuePayload
from .location import parse_location


logger = logging.getLogger(__name__)


FAILED_PARSE_SUMMARY = "Failed to parse the review result"


class ExtractionResult(NamedTuple):
    """Summary text and normalized issues, unpackable as a pair"""
    summary: str
    issues: List[Issue]


@dataclass
class ParsingStats:
    """Quick diagnostics about raw engine output."""
    is_valid_json: bool
    has_issues: bool
    has_summary: bool
    estimated_issue_count: int


class IssueExtractor:
    """
    Extracts and normalizes issues from raw engine text.

    Never raises on malformed input: a payload that cannot be repaired
    yields an empty issue list and FAILED_PARSE_SUMMARY.
    """

    def __init__(self, failed_summary: str = FAILED_PARSE_SUMMARY):
        """
        Initialize issue extractor.

        Args:
            failed_summary: Summary returned when the payload cannot be parsed
        """
        self.failed_summary = failed_summary
        self.leading_fence_pattern = re.compile(r'^```[\w-]*\s*')
        self.trailing_fence_pattern = re.compile(r'\s*```$')

    def extract(self, raw_text: str) -> ExtractionResult:
        """
        Extract summary and issues from raw engine output.

        Args:
            raw_text: Text expected to contain one JSON object

        Returns:
            ExtractionResult(summary, issues)
        """
        data = self._load(raw_text)
        if data is None:
            return ExtractionResult(self.failed_summary, [])

        summary = self.extract_summary(data)

        raw_issues = data.get('issues')
        if raw_issues is None:
            raw_issues = []
        elif not isinstance(raw_issues, list):
            logger.warning("Missing or invalid issues array")
            raw_issues = []

        issues = self._process_issues(raw_issues)
        logger.info(f"Extracted {len(issues)} of {len(raw_issues)} issues from engine output")
        return ExtractionResult(summary, issues)

    def repair(self, raw_text: str) -> Optional[str]:
        """
        Cut the first complete JSON object out of raw text.

        Strips surrounding whitespace and code fences, then scans from the
        first ``{`` tracking brace depth (braces inside JSON strings do not
        count) and ends where the depth returns to zero.

        Returns:
            JSON candidate string, or None if the text has no ``{``
        """
        if not isinstance(raw_text, str):
            return None

        cleaned = raw_text.strip()
        cleaned = self.leading_fence_pattern.sub('', cleaned, count=1)
        cleaned = self.trailing_fence_pattern.sub('', cleaned, count=1)

        start = cleaned.find('{')
        if start == -1:
            return None

        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(cleaned)):
            char = cleaned[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return cleaned[start:index + 1]

        # unbalanced; let the JSON decoder report it
        return cleaned[start:]

    def _load(self, raw_text: str) -> Optional[Dict[str, Any]]:
        candidate = self.repair(raw_text)
        if candidate is None:
            logger.error("Failed to parse review result: no JSON object found")
            return None

        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.error(f"Failed to parse review result: {e}")
            return None

        if not isinstance(data, dict):
            logger.error("Failed to parse review result: root must be an object")
            return None
        return data

    @staticmethod
    def extract_summary(data: Dict[str, Any]) -> str:
        """Join overallComments into a numbered list; empty when absent."""
        summary = data.get('summary')
        if isinstance(summary, str):
            return summary.strip()
        if not isinstance(summary, dict):
            if summary is not None:
                logger.warning("Missing or invalid summary object")
            return ""

        comments = summary.get('overallComments')
        if not isinstance(comments, list):
            return ""

        texts = [str(comment).strip() for comment in comments if comment is not None]
        texts = [text for text in texts if text]
        return '\n'.join(f"{number}. {text}" for number, text in enumerate(texts, start=1))

    def _process_issues(self, raw_issues: List[Any]) -> List[Issue]:
        issues = []
        seen_ids = set()

        for ordinal, entry in enumerate(raw_issues, start=1):
            if not isinstance(entry, dict):
                logger.warning(f"Invalid issue data at index {ordinal}: not an object")
                continue

            try:
                issue = IssuePayload.model_validate(entry).to_issue(ordinal)
            except ValidationError as e:
                fields = ', '.join(str(err['loc'][0]) for err in e.errors() if err.get('loc'))
                logger.warning(f"Rejected issue at index {ordinal}: invalid {fields}")
                continue

            if issue.id in seen_ids:
                new_id = f"{issue.id}_{ordinal}"
                while new_id in seen_ids:
                    new_id = f"{new_id}_{ordinal}"
                logger.warning(f"Duplicate issue id {issue.id}, renaming to {new_id}")
                issue = replace(issue, id=new_id)
            seen_ids.add(issue.id)

            issues.append(self._apply_location(issue))
            logger.debug(f"Parsed issue: {issue.title}")

        return issues

    @staticmethod
    def _apply_location(issue: Issue) -> Issue:
        """Fill file path and lines from the location string where missing."""
        if issue.file_path and issue.line_number is not None:
            return issue

        info = parse_location(issue.location)
        if info.is_empty:
            return issue

        return replace(
            issue,
            file_path=issue.file_path or info.file_path,
            start_line=issue.start_line if issue.start_line is not None else info.start_line,
            end_line=issue.end_line if issue.end_line is not None else info.end_line,
            line_number=issue.line_number if issue.line_number is not None else info.line_number,
        )

    def get_parsing_stats(self, raw_text: str) -> ParsingStats:
        """Inspect raw output without normalizing it."""
        data = self._load(raw_text)
        if data is None:
            return ParsingStats(False, False, False, 0)

        raw_issues = data.get('issues')
        count = len(raw_issues) if isinstance(raw_issues, list) else 0
        summary = data.get('summary')
        return ParsingStats(
            is_valid_json=True,
            has_issues=count > 0,
            has_summary=isinstance(summary, dict) and bool(summary.get('overallComments')),
            estimated_issue_count=count,
        )


def extract_issues(raw_text: str) -> ExtractionResult:
    """Functional form of IssueExtractor.extract."""
    return IssueExtractor().extract(raw_text)
