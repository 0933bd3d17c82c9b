"""
Review Reconciler

Classifies the issues of the current review cycle against the most
recent previous cycle as new, fixed, persistent or modified.
"""

import logging
import re
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from ..models.issue import Issue
from ..models.review import ModifiedIssue, ReviewComparison, ReviewResult


logger = logging.getLogger(__name__)


SIGNATURE_DESCRIPTION_CHARS = 100

SignatureFunc = Callable[[Issue], Hashable]
SimilarityFunc = Callable[[Issue, Issue], bool]

_WHITESPACE_RUN = re.compile(r'\s+')


def issue_signature(issue: Issue, description_chars: int = SIGNATURE_DESCRIPTION_CHARS) -> str:
    """
    Identity key used to match a finding across two review runs.

    Built from the issue type, its location (or file path) and the start
    of its description, with whitespace runs collapsed to ``_``. This is a
    wording-sensitive heuristic, not a stable key.
    """
    location = issue.location or issue.file_path or ""
    raw = f"{issue.type.value}_{location}_{issue.description[:description_chars]}"
    return _WHITESPACE_RUN.sub('_', raw)


def issues_are_similar(current: Issue, previous: Issue) -> bool:
    """Same type, location, file path and comment line."""
    return (
        current.type == previous.type
        and current.location == previous.location
        and current.file_path == previous.file_path
        and current.line_number == previous.line_number
    )


class ReviewReconciler:
    """
    Reconciles the current issue list against the previous one.

    The identity of a finding is decided by two injected strategies: a
    signature function used for lookup and a similarity predicate applied
    to signature matches. Both default to the heuristics above.
    """

    def __init__(
        self,
        signature: Optional[SignatureFunc] = None,
        similarity: Optional[SimilarityFunc] = None,
    ):
        """
        Initialize reconciler.

        Args:
            signature: Maps an issue to a hashable identity key
            similarity: Confirms that two issues with the same key are the same finding
        """
        self.signature = signature or issue_signature
        self.similarity = similarity or issues_are_similar

    def reconcile(self, current: Sequence[Issue], previous: Optional[Sequence[Issue]] = None) -> ReviewComparison:
        """
        Classify current issues against the previous cycle.

        Every current issue lands in exactly one of new, persistent or
        modified, and every previous issue in exactly one of fixed,
        persistent or modified. Only the first issue seen with a given
        signature can be matched; later duplicates count as new (current)
        or fixed (previous).

        Args:
            current: Issues of this review run
            previous: Issues of the most recent prior run, empty or None on a first review

        Returns:
            ReviewComparison
        """
        current = list(current or [])
        previous = list(previous or [])

        if not previous:
            comparison = ReviewComparison.first_review(current)
            logger.info(f"First review: {comparison.new_count} new issues")
            return comparison

        previous_by_signature = self._index(previous, "previous")
        matched_positions = set()
        seen_current = set()

        comparison = ReviewComparison()
        for issue in current:
            key = self.signature(issue)
            if key in seen_current:
                logger.warning(f"Duplicate signature in current issues: {issue.id}, treating as new")
                comparison.new_issues.append(issue)
                continue
            seen_current.add(key)

            entry = previous_by_signature.get(key)
            if entry is None:
                comparison.new_issues.append(issue)
                continue

            position, match = entry
            if not self.similarity(issue, match):
                logger.debug(f"Issue {issue.id} shares a signature with {match.id} but differs, treating as new")
                comparison.new_issues.append(issue)
            elif issue.description != match.description:
                matched_positions.add(position)
                comparison.modified_issues.append(ModifiedIssue(previous=match, current=issue))
            else:
                matched_positions.add(position)
                comparison.persistent_issues.append(issue)

        comparison.fixed_issues.extend(
            issue for position, issue in enumerate(previous) if position not in matched_positions
        )

        logger.info(
            f"Review comparison: {comparison.new_count} new, {comparison.fixed_count} fixed, "
            f"{comparison.persistent_count} persistent, {comparison.modified_count} modified"
        )
        return comparison

    def _index(self, issues: List[Issue], label: str) -> Dict[Hashable, Tuple[int, Issue]]:
        """Map signature to the position and issue of its first occurrence."""
        index: Dict[Hashable, Tuple[int, Issue]] = {}
        for position, issue in enumerate(issues):
            key = self.signature(issue)
            if key in index:
                logger.warning(
                    f"Duplicate signature in {label} issues: {issue.id} collides with {index[key][1].id}, "
                    f"keeping the first"
                )
                continue
            index[key] = (position, issue)
        return index

    def reconcile_results(
        self,
        current: ReviewResult,
        previous_results: Sequence[ReviewResult],
    ) -> ReviewComparison:
        """Reconcile against the most recent of several stored reviews."""
        latest = latest_review(previous_results)
        return self.reconcile(current.issues, latest.issues if latest else [])


def latest_review(results: Sequence[ReviewResult]) -> Optional[ReviewResult]:
    """
    Most recent review by timestamp.

    Results with an unparsable timestamp sort last; ties keep input order.
    """
    if not results:
        return None

    def sort_key(result: ReviewResult):
        created = result.created_at
        return created.timestamp() if created else float('-inf')

    return max(results, key=sort_key)


def reconcile(
    current: Sequence[Issue],
    previous: Optional[Sequence[Issue]] = None,
    signature: Optional[SignatureFunc] = None,
    similarity: Optional[SimilarityFunc] = None,
) -> ReviewComparison:
    """Functional form of ReviewReconciler.reconcile."""
    return ReviewReconciler(signature=signature, similarity=similarity).reconcile(current, previous)


def summarize_comparison(comparison: ReviewComparison) -> str:
    """One-line plain-text summary of a comparison."""
    parts = []
    if comparison.fixed_count:
        parts.append(f"{comparison.fixed_count} fixed")
    if comparison.new_count:
        parts.append(f"{comparison.new_count} new")
    if comparison.persistent_count:
        parts.append(f"{comparison.persistent_count} still open")
    if comparison.modified_count:
        parts.append(f"{comparison.modified_count} modified")
    return ', '.join(parts) if parts else "no changes"


def has_improvement(comparison: ReviewComparison) -> bool:
    return comparison.fixed_count > 0 or comparison.new_count == 0


def has_regression(comparison: ReviewComparison) -> bool:
    return comparison.new_count > comparison.fixed_count


def improvement_score(comparison: ReviewComparison) -> int:
    """Fixed issues minus new issues."""
    return comparison.fixed_count - comparison.new_count
