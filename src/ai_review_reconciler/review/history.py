"""
Review History

Encodes review results into a text block a caller can store alongside
a published review, and decodes such blocks back into ReviewResults.
The reconciler never reads storage itself; callers pass the stored
bodies they retrieved.
"""

import json
import logging
import re
from typing import Iterable, List, Optional

from ..exceptions import ReviewDataError
from ..models.issue import Issue
from ..models.review import ReviewResult
from .reconciler import latest_review


logger = logging.getLogger(__name__)


REVIEW_DATA_MARKER = 'REVIEW_DATA:'
REVIEW_DATA_PATTERN = re.compile(r'REVIEW_DATA:\s*```json\s*([\s\S]*?)\s*```')


def encode_review_data(result: ReviewResult) -> str:
    """
    Render a review result as a hidden ``REVIEW_DATA`` block.

    Backticks are written as JSON unicode escapes so issue text can never
    terminate the surrounding code fence.
    """
    payload = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    payload = payload.replace('`', '\\u0060')
    return f"<!-- {REVIEW_DATA_MARKER}\n```json\n{payload}\n```\n-->"


def decode_review_data(body: str) -> ReviewResult:
    """
    Decode the ``REVIEW_DATA`` block embedded in a stored body.

    Raises:
        ReviewDataError: if the body has no block or the block is not a valid record
    """
    if not body or REVIEW_DATA_MARKER not in body:
        raise ReviewDataError("No review data block found")

    match = REVIEW_DATA_PATTERN.search(body)
    if not match:
        raise ReviewDataError("Review data block is not fenced JSON")

    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise ReviewDataError(f"Review data is not valid JSON: {e}") from e

    return ReviewResult.from_dict(data)


def load_review_history(bodies: Iterable[str]) -> List[ReviewResult]:
    """
    Decode every stored body that carries review data.

    Bodies without a block are ignored; undecodable blocks are logged and
    skipped.

    Returns:
        Review results, newest first
    """
    results = []
    for body in bodies:
        if not body or REVIEW_DATA_MARKER not in body:
            continue
        try:
            results.append(decode_review_data(body))
        except ReviewDataError as e:
            logger.warning(f"Failed to parse previous review data: {e}")

    results.sort(key=lambda r: r.created_at.timestamp() if r.created_at else float('-inf'), reverse=True)
    logger.info(f"Loaded {len(results)} previous reviews")
    return results


def previous_issues(bodies: Iterable[str]) -> List[Issue]:
    """Issues of the most recent stored review, empty on a first review."""
    latest: Optional[ReviewResult] = latest_review(load_review_history(bodies))
    return list(latest.issues) if latest else []
