"""
Ignore Filter

Decides whether a file path is excluded from review.
Patterns are glob-like (``*``, ``**``, ``?``), compiled once at
construction and matched case-sensitively against the full path
or any path suffix starting at a directory boundary.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Union


logger = logging.getLogger(__name__)


IGNORE_FILE_NAME = '.reviewignore'

DEFAULT_IGNORE_PATTERNS = [
    # Lock files
    'package-lock.json',
    'yarn.lock',
    'pnpm-lock.yaml',
    'composer.lock',
    'Gemfile.lock',
    'Pipfile.lock',
    'poetry.lock',
    'Cargo.lock',
    'go.sum',
    # Dependencies
    'node_modules/**',
    'vendor/**',
    '.venv/**',
    '__pycache__/**',
    # Build output
    'dist/**',
    'build/**',
    'out/**',
    'target/**',
    '.next/**',
    '.nuxt/**',
    # Coverage and logs
    'coverage/**',
    '.nyc_output/**',
    '*.log',
    'logs/**',
    # Generated assets
    '*.min.js',
    '*.min.css',
    '*.map',
    '*.pyc',
    '.DS_Store',
]


def normalize_path(file_path: str) -> str:
    """Strip leading ``./`` and ``/`` segments and use forward slashes."""
    normalized = file_path.replace('\\', '/')
    while True:
        if normalized.startswith('./'):
            normalized = normalized[2:]
        elif normalized.startswith('/'):
            normalized = normalized.lstrip('/')
        else:
            return normalized


def compile_pattern(pattern: str) -> Pattern:
    """
    Translate a glob pattern into a regular expression.

    Args:
        pattern: Glob pattern; a leading ``/`` anchors it to the repository root,
            a trailing ``/`` matches everything below a directory

    Returns:
        Compiled pattern matching a normalized path
    """
    anchored = pattern.startswith('/')
    body = pattern.lstrip('/')
    if body.endswith('/'):
        body += '**'

    parts = []
    i = 0
    while i < len(body):
        if body.startswith('**/', i):
            parts.append('(?:.*/)?')
            i += 3
        elif body.startswith('**', i):
            parts.append('.*')
            i += 2
        elif body[i] == '*':
            parts.append('[^/]*')
            i += 1
        elif body[i] == '?':
            parts.append('[^/]')
            i += 1
        else:
            parts.append(re.escape(body[i]))
            i += 1

    prefix = '^' if anchored else '^(?:.*/)?'
    # a pattern naming a directory also covers everything below it
    return re.compile(prefix + ''.join(parts) + '(?:/.*)?$')


class IgnoreFilter:
    """
    Predicate excluding file paths from diff parsing and review.

    Built-in defaults come first, custom patterns are appended after them.
    The compiled pattern list is read-only once construction finishes and
    may be shared across concurrent parses.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None, use_defaults: bool = True):
        """
        Initialize ignore filter.

        Args:
            patterns: Custom patterns appended after the defaults
            use_defaults: Whether to include DEFAULT_IGNORE_PATTERNS
        """
        self._patterns: List[str] = []
        self._compiled: List[Pattern] = []

        if use_defaults:
            for pattern in DEFAULT_IGNORE_PATTERNS:
                self.add_pattern(pattern)

        for pattern in patterns or []:
            self.add_pattern(pattern)

        logger.debug(f"Ignore filter loaded with {len(self._patterns)} patterns")

    @classmethod
    def from_directory(
        cls,
        directory: Union[str, Path],
        use_defaults: bool = True,
        extra_patterns: Optional[Iterable[str]] = None,
    ) -> "IgnoreFilter":
        """
        Build a filter from the defaults and the directory's ignore file.

        A missing or unreadable ignore file is not an error.
        """
        patterns: List[str] = []
        ignore_file = Path(directory) / IGNORE_FILE_NAME
        if ignore_file.is_file():
            try:
                patterns = cls.parse_ignore_file(ignore_file.read_text(encoding='utf-8'))
                logger.info(f"Loaded {len(patterns)} patterns from {ignore_file}")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to read ignore file {ignore_file}: {e}")
        patterns.extend(extra_patterns or [])
        return cls(patterns=patterns, use_defaults=use_defaults)

    @staticmethod
    def parse_ignore_file(content: str) -> List[str]:
        """Read patterns from ignore-file text, skipping comments and blank lines."""
        patterns = []
        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            patterns.append(line)
        return patterns

    @property
    def patterns(self) -> List[str]:
        return list(self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """Append a custom pattern."""
        pattern = pattern.strip()
        if not pattern:
            return
        if pattern.startswith('!'):
            logger.warning(f"Negated ignore patterns are not supported, skipping: {pattern}")
            return
        self._patterns.append(pattern)
        self._compiled.append(compile_pattern(pattern))

    def should_ignore(self, file_path: str) -> bool:
        """
        Check whether a file is excluded from review.

        Args:
            file_path: Repository-relative path, leading ``./`` or ``/`` allowed

        Returns:
            True if any pattern matches
        """
        normalized = normalize_path(file_path or '')
        if not normalized:
            return False
        for pattern, compiled in zip(self._patterns, self._compiled):
            if compiled.match(normalized):
                logger.debug(f"Ignoring {file_path} (matched '{pattern}')")
                return True
        return False

    def filter_files(self, file_paths: Iterable[str]) -> List[str]:
        """Keep only the paths that are not ignored."""
        return [path for path in file_paths if not self.should_ignore(path)]
