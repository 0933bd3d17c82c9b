"""
Diff Data Models

Structured representation of a parsed unified diff
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple


class LineOrigin(str, Enum):
    """Origin tag of a single hunk line."""
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"

    @property
    def occupies_new_side(self) -> bool:
        """Whether the line has a line number in the new file."""
        return self is not LineOrigin.REMOVED

    @property
    def occupies_old_side(self) -> bool:
        """Whether the line has a line number in the old file."""
        return self is not LineOrigin.ADDED


@dataclass(frozen=True)
class DiffLine:
    """One line of hunk content"""
    origin: LineOrigin
    content: str

    @classmethod
    def from_raw(cls, raw_line: str) -> "DiffLine":
        """Tag a raw hunk line by its leading character."""
        if raw_line.startswith('+'):
            return cls(LineOrigin.ADDED, raw_line[1:])
        if raw_line.startswith('-'):
            return cls(LineOrigin.REMOVED, raw_line[1:])
        if raw_line.startswith(' '):
            return cls(LineOrigin.CONTEXT, raw_line[1:])
        # blank lines inside a hunk are context lines whose leading space was stripped
        return cls(LineOrigin.CONTEXT, raw_line)

    def to_raw(self) -> str:
        prefix = {LineOrigin.ADDED: '+', LineOrigin.REMOVED: '-', LineOrigin.CONTEXT: ' '}
        return prefix[self.origin] + self.content


@dataclass
class Hunk:
    """A contiguous changed region of one file"""
    file_path: str
    old_start: int
    old_line_count: int
    new_start: int
    new_line_count: int
    lines: List[DiffLine] = field(default_factory=list)

    def __post_init__(self):
        """Validate header values"""
        if self.old_start < 0 or self.new_start < 0:
            raise ValueError("Line numbers must be non-negative")
        if self.old_line_count < 0 or self.new_line_count < 0:
            raise ValueError("Line counts must be non-negative")

    @property
    def new_end(self) -> int:
        """Last new-side line number covered by the hunk header."""
        return self.new_start + self.new_line_count - 1

    @property
    def added_count(self) -> int:
        return sum(1 for line in self.lines if line.origin is LineOrigin.ADDED)

    @property
    def removed_count(self) -> int:
        return sum(1 for line in self.lines if line.origin is LineOrigin.REMOVED)

    @property
    def context_count(self) -> int:
        return sum(1 for line in self.lines if line.origin is LineOrigin.CONTEXT)

    def is_consistent(self) -> bool:
        """Check the recorded lines against the counts in the hunk header."""
        return (
            self.added_count + self.context_count == self.new_line_count
            and self.removed_count + self.context_count == self.old_line_count
        )

    def covers_new_line(self, line_number: int) -> bool:
        return self.new_start <= line_number <= self.new_end

    def new_side_lines(self) -> Iterator[Tuple[int, DiffLine]]:
        """
        Yield (new line number, line) for every line present in the new file.

        Removed lines do not occupy new-side line numbers and are skipped.
        """
        current = self.new_start
        for line in self.lines:
            if line.origin.occupies_new_side:
                yield current, line
                current += 1


@dataclass
class ParsedDiff:
    """Mapping of new-side file path to its hunks, in diff order"""
    files: Dict[str, List[Hunk]] = field(default_factory=OrderedDict)

    def __contains__(self, file_path: str) -> bool:
        return file_path in self.files

    def __len__(self) -> int:
        return len(self.files)

    @property
    def file_paths(self) -> List[str]:
        return list(self.files.keys())

    @property
    def total_hunks(self) -> int:
        return sum(len(hunks) for hunks in self.files.values())

    @property
    def is_empty(self) -> bool:
        return not self.files

    def hunks_for(self, file_path: str) -> List[Hunk]:
        """Hunks for an exact file path, empty if the file is not in the diff."""
        return self.files.get(file_path, [])


@dataclass
class DiffStats:
    """Summary counts over a parsed diff"""
    file_count: int
    total_hunks: int
    added_lines: int
    removed_lines: int
    modified_files: List[str]
