"""
Review Data Models

Review results and the comparison between two review cycles
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import ReviewDataError
from .issue import Issue


logger = logging.getLogger(__name__)


@dataclass
class ReviewResult:
    """The outcome of one review run over a commit"""
    review_id: str
    timestamp: str
    commit_sha: str
    summary: str
    issues: List[Issue] = field(default_factory=list)
    total_issues: Optional[int] = None

    def __post_init__(self):
        """Recompute the issue count from the authoritative list"""
        actual = len(self.issues)
        if self.total_issues is not None and self.total_issues != actual:
            logger.warning(
                f"Total issues count ({self.total_issues}) does not match "
                f"issues length ({actual}) for review {self.review_id}, correcting"
            )
        self.total_issues = actual

    @staticmethod
    def make_review_id(pr_number: int, commit_sha: str, now: Optional[datetime] = None) -> str:
        """Build a traceable id from PR number, short commit and a time suffix."""
        now = now or datetime.now(timezone.utc)
        millis = str(int(now.timestamp() * 1000))
        return f"pr{pr_number}_{commit_sha[:8]}_{millis[-6:]}"

    @classmethod
    def create_new(
        cls,
        pr_number: int,
        commit_sha: str,
        summary: str,
        issues: List[Issue],
        now: Optional[datetime] = None,
    ) -> "ReviewResult":
        """Create a review result stamped with the current time."""
        now = now or datetime.now(timezone.utc)
        return cls(
            review_id=cls.make_review_id(pr_number, commit_sha, now),
            timestamp=now.isoformat().replace('+00:00', 'Z'),
            commit_sha=commit_sha,
            summary=summary,
            issues=list(issues),
        )

    @property
    def created_at(self) -> Optional[datetime]:
        """Parsed timestamp, None when the stored value is not ISO-8601."""
        try:
            parsed = datetime.fromisoformat(self.timestamp.replace('Z', '+00:00'))
        except (AttributeError, ValueError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reviewId': self.review_id,
            'timestamp': self.timestamp,
            'commitSha': self.commit_sha,
            'summary': self.summary,
            'issues': [issue.to_dict() for issue in self.issues],
            'totalIssues': len(self.issues),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewResult":
        """
        Decode a stored review result.

        Issue entries that fail validation are skipped with a warning.

        Raises:
            ReviewDataError: if the record is not an object or misses its identity fields
        """
        if not isinstance(data, dict):
            raise ReviewDataError("Review record must be a JSON object")

        for key in ('reviewId', 'timestamp', 'commitSha'):
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ReviewDataError(f"Review record is missing '{key}'")

        raw_issues = data.get('issues')
        if not isinstance(raw_issues, list):
            logger.warning(f"Review {data['reviewId']} has no issues array, treating as empty")
            raw_issues = []

        issues = []
        for index, raw_issue in enumerate(raw_issues, start=1):
            if not isinstance(raw_issue, dict):
                logger.warning(f"Skipping non-object issue at index {index} in review {data['reviewId']}")
                continue
            try:
                issues.append(Issue.from_dict(raw_issue, ordinal=index))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored issue at index {index}: {e.error_count()} errors")

        summary = data.get('summary')
        return cls(
            review_id=data['reviewId'],
            timestamp=data['timestamp'],
            commit_sha=data['commitSha'],
            summary=summary if isinstance(summary, str) else "",
            issues=issues,
            total_issues=data.get('totalIssues') if isinstance(data.get('totalIssues'), int) else None,
        )


@dataclass(frozen=True)
class ModifiedIssue:
    """A finding present in both cycles whose description changed"""
    previous: Issue
    current: Issue


@dataclass
class ReviewComparison:
    """Classification of the current issues against the previous cycle"""
    new_issues: List[Issue] = field(default_factory=list)
    fixed_issues: List[Issue] = field(default_factory=list)
    persistent_issues: List[Issue] = field(default_factory=list)
    modified_issues: List[ModifiedIssue] = field(default_factory=list)

    @classmethod
    def first_review(cls, current: List[Issue]) -> "ReviewComparison":
        """Every issue of a first review is new."""
        return cls(new_issues=list(current))

    @property
    def new_count(self) -> int:
        return len(self.new_issues)

    @property
    def fixed_count(self) -> int:
        return len(self.fixed_issues)

    @property
    def persistent_count(self) -> int:
        return len(self.persistent_issues)

    @property
    def modified_count(self) -> int:
        return len(self.modified_issues)

    @property
    def current_total(self) -> int:
        """Number of current issues accounted for."""
        return self.new_count + self.persistent_count + self.modified_count

    @property
    def previous_total(self) -> int:
        """Number of previous issues accounted for."""
        return self.fixed_count + self.persistent_count + self.modified_count

    @property
    def has_changes(self) -> bool:
        return bool(self.new_issues or self.fixed_issues or self.modified_issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'newIssues': [issue.to_dict() for issue in self.new_issues],
            'fixedIssues': [issue.to_dict() for issue in self.fixed_issues],
            'persistentIssues': [issue.to_dict() for issue in self.persistent_issues],
            'modifiedIssues': [
                {'previous': pair.previous.to_dict(), 'current': pair.current.to_dict()}
                for pair in self.modified_issues
            ],
            'newCount': self.new_count,
            'fixedCount': self.fixed_count,
            'persistentCount': self.persistent_count,
            'modifiedCount': self.modified_count,
        }
