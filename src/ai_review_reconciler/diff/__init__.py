"""
Diff Layer

This module provides unified diff parsing, ignore filtering
and validation of comment locations against the diff.
"""

from .ignore import IgnoreFilter, DEFAULT_IGNORE_PATTERNS
from .parser import DiffParser, ParserState, parse_diff
from .validator import LineInDiffValidator, is_line_in_diff, resolve_file_path

__all__ = [
    'IgnoreFilter',
    'DEFAULT_IGNORE_PATTERNS',
    'DiffParser',
    'ParserState',
    'parse_diff',
    'LineInDiffValidator',
    'is_line_in_diff',
    'resolve_file_path',
]
