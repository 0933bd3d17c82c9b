"""
End-to-End Integration Tests

Runs two consecutive review cycles through ReviewReconcilerAPI:
diff parsing, issue extraction, diff validation and reconciliation
against the review data stored by the previous cycle.
"""

import json

import pytest

from ai_review_reconciler import ReviewReconcilerAPI
from ai_review_reconciler.config import AppConfig, ConfigManager, IgnoreConfig, ReconcileConfig
from ai_review_reconciler.review.extractor import FAILED_PARSE_SUMMARY
from ai_review_reconciler.review.history import decode_review_data


DIFF = """diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -10,3 +10,5 @@ def handler(request):
     user = load_user(request)
-    return user.name
+    if user is None:
+        return None
+    return user.name
     log(user)
diff --git a/package-lock.json b/package-lock.json
index 3333333..4444444 100644
--- a/package-lock.json
+++ b/package-lock.json
@@ -1,3 +1,3 @@
 {
-  "version": "1.0.0"
+  "version": "1.0.1"
 }
"""

LONG_PREFIX = "Repeated database queries inside the request loop " * 3

NULL_CHECK = {
    "id": "bug-1",
    "type": "bug",
    "severity": "high",
    "title": "Possible None access",
    "description": "user may be None when the session expired",
    "location": "src/app.py:11",
    "filePath": "src/app.py",
    "lineNumber": 11,
}

HARDCODED_SECRET = {
    "type": "security",
    "severity": "critical",
    "title": "Hardcoded secret",
    "description": "API token is committed in the source",
    "location": "src/app.py:40",
}

SLOW_QUERY = {
    "type": "performance",
    "severity": "medium",
    "title": "N+1 query",
    "description": LONG_PREFIX + "on every user",
    "location": "src/db.py:5",
}


def engine_output(issues, comments=("Reviewed the handler changes",)):
    return "```json\n" + json.dumps({
        "summary": {"overallComments": list(comments)},
        "issues": issues,
    }, indent=2) + "\n```\nLet me know if anything is unclear."


class TestEndToEndFlow:
    """Test complete review cycles through the API."""

    def setup_method(self):
        """Set up test fixtures."""
        self.api = ReviewReconcilerAPI()

    def test_first_cycle(self):
        """Test a first review reports every issue as new."""
        report = self.api.run(
            diff_text=DIFF,
            engine_output=engine_output([NULL_CHECK, HARDCODED_SECRET, SLOW_QUERY]),
            pr_number=7,
            commit_sha="0123456789abcdef",
        )

        assert report.result.review_id.startswith("pr7_01234567_")
        assert report.result.summary == "1. Reviewed the handler changes"
        assert report.result.total_issues == 3
        assert [issue.id for issue in report.result.issues] == ["bug-1", "issue_2", "issue_3"]

        assert report.comparison.new_count == 3
        assert report.comparison.fixed_count == 0

        assert [issue.id for issue in report.commentable_issues] == ["bug-1"]
        assert [issue.id for issue in report.skipped_issues] == ["issue_2", "issue_3"]

        assert report.parsed_diff.file_paths == ["src/app.py"]
        assert report.diff_stats.added_lines == 3
        assert report.diff_stats.removed_lines == 1

    def test_second_cycle_reconciles_with_stored_review(self):
        """Test the second cycle classifies issues against the first."""
        first = self.api.run(
            diff_text=DIFF,
            engine_output=engine_output([NULL_CHECK, HARDCODED_SECRET, SLOW_QUERY]),
            pr_number=7,
            commit_sha="0123456789abcdef",
        )
        stored_bodies = [
            "Thanks for the review!",
            f"## AI Review\n\n{first.review_data}",
        ]

        reworded_query = dict(SLOW_QUERY, description=LONG_PREFIX + "for each row of the result")
        new_issue = {
            "type": "code_smell",
            "severity": "low",
            "title": "Unused import",
            "description": "sys is imported but never used",
            "location": "src/app.py:1",
        }
        second = self.api.run(
            diff_text=DIFF,
            engine_output=engine_output([NULL_CHECK, reworded_query, new_issue]),
            pr_number=7,
            commit_sha="fedcba9876543210",
            previous_bodies=stored_bodies,
        )

        comparison = second.comparison
        assert [issue.title for issue in comparison.persistent_issues] == ["Possible None access"]
        assert [issue.title for issue in comparison.fixed_issues] == ["Hardcoded secret"]
        assert [issue.title for issue in comparison.new_issues] == ["Unused import"]
        assert len(comparison.modified_issues) == 1
        modified = comparison.modified_issues[0]
        assert modified.previous.description.endswith("on every user")
        assert modified.current.description.endswith("for each row of the result")

    def test_review_data_round_trip(self):
        report = self.api.run(DIFF, engine_output([NULL_CHECK]), 3, "abcdef0123456789")

        restored = decode_review_data(report.review_data)

        assert restored == report.result

    def test_unparsable_engine_output(self):
        """Test a broken engine response yields no issues, so stored issues count as fixed."""
        first = self.api.run(DIFF, engine_output([NULL_CHECK]), 7, "0123456789abcdef")

        report = self.api.run(
            DIFF,
            "I could not produce JSON this time.",
            7,
            "fedcba9876543210",
            previous_bodies=[first.review_data],
        )

        assert report.result.summary == FAILED_PARSE_SUMMARY
        assert report.result.issues == []
        assert report.comparison.fixed_count == 1

    def test_explicit_previous_issues_take_precedence(self):
        first = self.api.run(DIFF, engine_output([NULL_CHECK]), 7, "0123456789abcdef")

        report = self.api.run(
            DIFF,
            engine_output([NULL_CHECK]),
            7,
            "fedcba9876543210",
            previous_bodies=["nothing stored"],
            previous_issues=first.result.issues,
        )

        assert report.comparison.persistent_count == 1
        assert report.comparison.new_count == 0


class TestConfiguredFlow:
    """Test the pipeline under non-default configuration."""

    def test_outside_diff_filtering_disabled(self):
        config = AppConfig(reconcile=ReconcileConfig(filter_outside_diff=False))
        api = ReviewReconcilerAPI(config=config)

        report = api.run(DIFF, engine_output([NULL_CHECK, HARDCODED_SECRET]), 1, "0123456789abcdef")

        assert len(report.commentable_issues) == 2
        assert report.skipped_issues == []

    def test_ignore_file_drops_matching_files(self, tmp_path):
        (tmp_path / ".reviewignore").write_text("# generated\nsrc/**\n", encoding="utf-8")
        config = AppConfig(ignore=IgnoreConfig(use_defaults=False, ignore_file_dir=str(tmp_path)))
        api = ReviewReconcilerAPI(config_manager=ConfigManager(config, setup_logging=False))

        report = api.run(DIFF, engine_output([NULL_CHECK]), 1, "0123456789abcdef")

        assert report.parsed_diff.file_paths == ["package-lock.json"]
        assert report.skipped_issues[0].id == "bug-1"

    @pytest.mark.parametrize("diff_text", ["", "not a diff"])
    def test_empty_diff(self, diff_text):
        report = ReviewReconcilerAPI().run(diff_text, engine_output([NULL_CHECK]), 1, "0123456789abcdef")

        assert report.parsed_diff.is_empty
        assert report.commentable_issues == []
        assert report.comparison.new_count == 1
