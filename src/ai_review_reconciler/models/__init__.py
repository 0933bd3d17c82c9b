"""
Data Models

Value objects shared by the diff, extraction and reconciliation layers
"""

from .diff import LineOrigin, DiffLine, Hunk, ParsedDiff, DiffStats
from .issue import Issue, IssuePayload, IssueType, IssueSeverity
from .review import ReviewResult, ReviewComparison, ModifiedIssue

__all__ = [
    "LineOrigin",
    "DiffLine",
    "Hunk",
    "ParsedDiff",
    "DiffStats",
    "Issue",
    "IssuePayload",
    "IssueType",
    "IssueSeverity",
    "ReviewResult",
    "ReviewComparison",
    "ModifiedIssue",
]
