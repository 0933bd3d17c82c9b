"""
Issue Data Models

Review findings produced by the analysis engine
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


logger = logging.getLogger(__name__)


class IssueType(str, Enum):
    """Closed set of finding categories"""
    BUG = "bug"
    CODE_SMELL = "code_smell"
    SECURITY = "security"
    PERFORMANCE = "performance"


class IssueSeverity(str, Enum):
    """Closed set of severities, declared from least to most severe"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(IssueSeverity).index(self)


VALID_ISSUE_TYPES = {t.value for t in IssueType}
VALID_SEVERITIES = {s.value for s in IssueSeverity}


@dataclass(frozen=True)
class Issue:
    """A single review finding, immutable once extracted"""
    id: str
    type: IssueType
    severity: IssueSeverity
    title: str
    description: str
    location: str = ""
    file_path: Optional[str] = None
    line_number: Optional[int] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    confidence: Optional[float] = None
    fix_prompt: Optional[str] = None
    suggestion: Optional[str] = None

    @property
    def is_high_priority(self) -> bool:
        return self.severity in (IssueSeverity.HIGH, IssueSeverity.CRITICAL)

    @property
    def line_range(self) -> str:
        """Line range as text, empty when the issue has no line."""
        if self.start_line and self.end_line and self.start_line != self.end_line:
            return f"{self.start_line}-{self.end_line}"
        line = self.line_number or self.start_line
        return str(line) if line else ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the engine's camelCase keys, omitting unset fields."""
        data = {
            'id': self.id,
            'type': self.type.value,
            'severity': self.severity.value,
            'title': self.title,
            'description': self.description,
            'location': self.location,
            'filePath': self.file_path,
            'lineNumber': self.line_number,
            'startLine': self.start_line,
            'endLine': self.end_line,
            'confidence': self.confidence,
            'fixPrompt': self.fix_prompt,
            'suggestion': self.suggestion,
        }
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], ordinal: int = 1) -> "Issue":
        """
        Build an issue from a decoded JSON object.

        Raises:
            pydantic.ValidationError: if mandatory text fields are missing
        """
        return IssuePayload.model_validate(data).to_issue(ordinal)


def _coerce_line(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            logger.debug(f"Dropping unparsable line value: {value!r}")
            return None
        return int(number) if math.isfinite(number) else None
    return None


# Pydantic model for engine payload validation
class IssuePayload(BaseModel):
    """One raw issue entry as emitted by the analysis engine"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: Optional[str] = None
    type: IssueType = IssueType.CODE_SMELL
    severity: IssueSeverity = IssueSeverity.MEDIUM
    title: str
    description: str = ""
    location: str = ""
    file_path: Optional[str] = Field(default=None, alias='filePath')
    line_number: Optional[int] = Field(default=None, alias='lineNumber')
    start_line: Optional[int] = Field(default=None, alias='startLine')
    end_line: Optional[int] = Field(default=None, alias='endLine')
    confidence: Optional[float] = None
    fix_prompt: Optional[str] = Field(default=None, alias='fixPrompt')
    suggestion: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v):
        if v is None or isinstance(v, bool):
            return None
        v = str(v).strip()
        return v or None

    @field_validator('type', mode='before')
    @classmethod
    def validate_type(cls, v):
        if isinstance(v, IssueType):
            return v
        if not isinstance(v, str) or v not in VALID_ISSUE_TYPES:
            logger.warning(f"Invalid issue type: {v!r}, defaulting to 'code_smell'")
            return IssueType.CODE_SMELL
        return v

    @field_validator('severity', mode='before')
    @classmethod
    def validate_severity(cls, v):
        if isinstance(v, IssueSeverity):
            return v
        if not isinstance(v, str) or v not in VALID_SEVERITIES:
            logger.warning(f"Invalid severity: {v!r}, defaulting to 'medium'")
            return IssueSeverity.MEDIUM
        return v

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()

    @field_validator('description', 'location', mode='before')
    @classmethod
    def validate_text(cls, v):
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator('file_path', 'fix_prompt', 'suggestion', mode='before')
    @classmethod
    def validate_optional_text(cls, v):
        if v is None:
            return None
        v = v if isinstance(v, str) else str(v)
        return v or None

    @field_validator('line_number', 'start_line', 'end_line', mode='before')
    @classmethod
    def validate_lines(cls, v):
        return _coerce_line(v)

    @field_validator('confidence', mode='before')
    @classmethod
    def validate_confidence(cls, v):
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, str):
            try:
                v = float(v.strip())
            except ValueError:
                return None
        if not isinstance(v, (int, float)) or not 0.0 <= v <= 1.0:
            logger.debug(f"Dropping out-of-range confidence: {v!r}")
            return None
        return float(v)

    def to_issue(self, ordinal: int) -> Issue:
        """
        Convert to an immutable Issue.

        Args:
            ordinal: 1-based position of the entry, used to synthesize a missing id

        Returns:
            Issue with comment line resolved from lineNumber, endLine or startLine
        """
        line_number = self.line_number
        if line_number is None:
            line_number = self.end_line if self.end_line is not None else self.start_line

        return Issue(
            id=self.id or f"issue_{ordinal}",
            type=IssueType(self.type),
            severity=IssueSeverity(self.severity),
            title=self.title,
            description=self.description,
            location=self.location,
            file_path=self.file_path,
            line_number=line_number,
            start_line=self.start_line,
            end_line=self.end_line,
            confidence=self.confidence,
            fix_prompt=self.fix_prompt,
            suggestion=self.suggestion,
        )
