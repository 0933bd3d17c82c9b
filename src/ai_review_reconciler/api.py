"""
Review Reconciler API

Main interface that runs the full pipeline over in-memory inputs:
diff parsing, issue extraction, location validation and
reconciliation against the previous review cycle.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .config import AppConfig, ConfigManager
from .diff.parser import DiffParser
from .diff.validator import LineInDiffValidator
from .models.diff import DiffStats, ParsedDiff
from .models.issue import Issue
from .models.review import ReviewComparison, ReviewResult
from .review.history import encode_review_data, previous_issues as load_previous_issues


logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    """Everything a publisher needs to post one review cycle."""
    result: ReviewResult
    comparison: ReviewComparison
    parsed_diff: ParsedDiff
    diff_stats: DiffStats
    commentable_issues: List[Issue] = field(default_factory=list)
    skipped_issues: List[Issue] = field(default_factory=list)

    @property
    def review_data(self) -> str:
        """Block to store with the published review for the next cycle."""
        return encode_review_data(self.result)


class ReviewReconcilerAPI:
    """
    Main review reconciliation interface.

    Runs the pipeline:
    1. Parse the diff, dropping ignored files
    2. Extract issues from the engine output
    3. Split issues by whether their line lies inside the diff
    4. Reconcile against the most recent stored review
    """

    def __init__(self, config: Optional[AppConfig] = None, config_manager: Optional[ConfigManager] = None):
        """
        Initialize API.

        Args:
            config: Configuration; defaults are used when omitted
            config_manager: Prebuilt manager, takes precedence over config
        """
        self.config_manager = config_manager or ConfigManager(config or AppConfig(), setup_logging=False)
        self.config = self.config_manager.config

        self.ignore_filter = self.config_manager.build_ignore_filter()
        self.diff_parser = DiffParser(self.ignore_filter)
        self.extractor = self.config_manager.build_extractor()
        self.reconciler = self.config_manager.build_reconciler()

    def run(
        self,
        diff_text: str,
        engine_output: str,
        pr_number: int,
        commit_sha: str,
        previous_bodies: Iterable[str] = (),
        previous_issues: Optional[Sequence[Issue]] = None,
    ) -> ReconciliationReport:
        """
        Run one review cycle.

        Args:
            diff_text: Unified diff of the change set
            engine_output: Raw analysis engine response
            pr_number: Pull request number, used for the review id
            commit_sha: Head commit of the change set
            previous_bodies: Stored bodies that may carry REVIEW_DATA blocks
            previous_issues: Previous issue snapshot; takes precedence over previous_bodies

        Returns:
            ReconciliationReport
        """
        logger.info(f"Reconciling review for PR #{pr_number} at {commit_sha[:8]}")

        parsed_diff = self.diff_parser.parse(diff_text)
        diff_stats = self.diff_parser.get_diff_stats(parsed_diff)

        summary, issues = self.extractor.extract(engine_output)
        result = ReviewResult.create_new(pr_number, commit_sha, summary, issues)

        validator = LineInDiffValidator(parsed_diff)
        if self.config.reconcile.filter_outside_diff:
            commentable, skipped = validator.partition_issues(result.issues)
        else:
            commentable, skipped = list(result.issues), []

        if previous_issues is None:
            previous_issues = load_previous_issues(previous_bodies)
        comparison = self.reconciler.reconcile(result.issues, previous_issues)

        logger.info(
            f"Review {result.review_id}: {result.total_issues} issues, "
            f"{len(commentable)} commentable, {len(skipped)} outside the diff"
        )
        return ReconciliationReport(
            result=result,
            comparison=comparison,
            parsed_diff=parsed_diff,
            diff_stats=diff_stats,
            commentable_issues=commentable,
            skipped_issues=skipped,
        )
