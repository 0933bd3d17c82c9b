"""
Issue Statistics

Sorting, grouping and distribution helpers over issue lists
"""

from typing import Dict, Iterable, List, Optional

from ..models.issue import Issue, IssueSeverity, IssueType


# most urgent first
TYPE_ORDER = {
    IssueType.SECURITY: 0,
    IssueType.BUG: 1,
    IssueType.PERFORMANCE: 2,
    IssueType.CODE_SMELL: 3,
}


def sort_issues(issues: Iterable[Issue]) -> List[Issue]:
    """Sort by severity (critical first), then type, then title."""
    return sorted(
        issues,
        key=lambda issue: (-issue.severity.rank, TYPE_ORDER[issue.type], issue.title),
    )


def group_by_severity(issues: Iterable[Issue]) -> Dict[IssueSeverity, List[Issue]]:
    groups: Dict[IssueSeverity, List[Issue]] = {severity: [] for severity in reversed(IssueSeverity)}
    for issue in issues:
        groups[issue.severity].append(issue)
    return groups


def group_by_type(issues: Iterable[Issue]) -> Dict[IssueType, List[Issue]]:
    groups: Dict[IssueType, List[Issue]] = {issue_type: [] for issue_type in IssueType}
    for issue in issues:
        groups[issue.type].append(issue)
    return groups


def severity_distribution(issues: Iterable[Issue]) -> Dict[str, int]:
    """Count issues per severity, plus a ``total`` entry."""
    issues = list(issues)
    distribution = {severity.value: 0 for severity in reversed(IssueSeverity)}
    for issue in issues:
        distribution[issue.severity.value] += 1
    distribution['total'] = len(issues)
    return distribution


def type_distribution(issues: Iterable[Issue]) -> Dict[str, int]:
    issues = list(issues)
    distribution = {issue_type.value: 0 for issue_type in IssueType}
    for issue in issues:
        distribution[issue.type.value] += 1
    distribution['total'] = len(issues)
    return distribution


def filter_by_min_severity(issues: Iterable[Issue], min_severity: IssueSeverity) -> List[Issue]:
    return [issue for issue in issues if issue.severity.rank >= min_severity.rank]


def most_severe(issues: Iterable[Issue]) -> Optional[Issue]:
    """First issue of the highest severity present, None for no issues."""
    best = None
    for issue in issues:
        if best is None or issue.severity.rank > best.severity.rank:
            best = issue
    return best


def has_high_priority_issues(issues: Iterable[Issue]) -> bool:
    return any(issue.is_high_priority for issue in issues)
