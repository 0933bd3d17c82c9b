"""
Property-based tests for review reconciliation.

Covers: first-review classification, partition completeness
and symmetry when the two cycles are swapped.
"""

from hypothesis import given, settings, strategies as st

from ai_review_reconciler.models.issue import Issue, IssueSeverity, IssueType
from ai_review_reconciler.review.reconciler import ReviewReconciler


# small value pools so signatures collide often
ISSUES = st.builds(
    Issue,
    id=st.text(alphabet="abc123", min_size=1, max_size=4),
    type=st.sampled_from(list(IssueType)),
    severity=st.sampled_from(list(IssueSeverity)),
    title=st.just("Finding"),
    description=st.sampled_from(["null deref", "null  deref", "leak", "x" * 100 + " tail", "x" * 100 + " end"]),
    location=st.sampled_from(["", "a.py:1", "a.py:2"]),
    file_path=st.sampled_from([None, "a.py"]),
    line_number=st.sampled_from([None, 1, 2]),
)

ISSUE_LISTS = st.lists(ISSUES, max_size=10)


def ids(issues):
    return sorted(id(issue) for issue in issues)


class TestReconciliationProperties:
    """Property tests for ReviewReconciler."""

    @given(ISSUE_LISTS)
    def test_first_review_everything_new(self, current):
        """
        Property: without a previous cycle every current issue is new.
        """
        comparison = ReviewReconciler().reconcile(current, [])

        assert comparison.new_issues == current
        assert comparison.fixed_count == 0
        assert comparison.persistent_count == 0
        assert comparison.modified_count == 0

    @given(ISSUE_LISTS, ISSUE_LISTS)
    @settings(max_examples=300)
    def test_partition_is_complete(self, current, previous):
        """
        Property: each issue of either cycle is classified exactly once.

        Given: Arbitrary current and previous issue lists, duplicates included
        When: They are reconciled
        Then: Current issues split into new, persistent and modified;
              previous issues split into fixed, persistent and modified
        """
        comparison = ReviewReconciler().reconcile(current, previous)

        assert comparison.current_total == len(current)
        assert comparison.previous_total == len(previous)

        classified_current = (
            comparison.new_issues
            + comparison.persistent_issues
            + [pair.current for pair in comparison.modified_issues]
        )
        assert ids(classified_current) == ids(current)

        for pair in comparison.modified_issues:
            assert pair.current.description != pair.previous.description

    @given(ISSUE_LISTS, ISSUE_LISTS)
    @settings(max_examples=300)
    def test_swapping_cycles_is_symmetric(self, first, second):
        """
        Property: swapping the cycles swaps new and fixed.
        """
        reconciler = ReviewReconciler()

        forward = reconciler.reconcile(first, second)
        backward = reconciler.reconcile(second, first)

        assert forward.new_count == backward.fixed_count
        assert forward.fixed_count == backward.new_count
        assert forward.persistent_count == backward.persistent_count
        assert forward.modified_count == backward.modified_count

    @given(ISSUE_LISTS)
    def test_identical_cycles_have_no_changes(self, issues):
        """
        Property: reconciling a cycle with itself never reports modifications.
        """
        comparison = ReviewReconciler().reconcile(issues, issues)

        assert comparison.modified_count == 0
        assert comparison.new_count == comparison.fixed_count
