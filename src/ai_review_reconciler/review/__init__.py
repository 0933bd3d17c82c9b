"""
Review Layer

This module provides issue extraction from engine output, location
parsing, review history decoding, cross-cycle reconciliation and
issue statistics.
"""

from .extractor import IssueExtractor, ExtractionResult, extract_issues
from .location import LocationInfo, parse_location
from .reconciler import ReviewReconciler, issue_signature, issues_are_similar, reconcile
from .history import encode_review_data, decode_review_data, load_review_history, previous_issues
from .stats import (
    sort_issues,
    group_by_severity,
    group_by_type,
    severity_distribution,
    type_distribution,
    filter_by_min_severity,
    most_severe,
    has_high_priority_issues,
)

__all__ = [
    'IssueExtractor',
    'ExtractionResult',
    'extract_issues',
    'LocationInfo',
    'parse_location',
    'ReviewReconciler',
    'issue_signature',
    'issues_are_similar',
    'reconcile',
    'encode_review_data',
    'decode_review_data',
    'load_review_history',
    'previous_issues',
    'sort_issues',
    'group_by_severity',
    'group_by_type',
    'severity_distribution',
    'type_distribution',
    'filter_by_min_severity',
    'most_severe',
    'has_high_priority_issues',
]
