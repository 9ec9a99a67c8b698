from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Union

if TYPE_CHECKING:
    from texmd.config import MathRenderConfig


class TexmdError(Exception):
    """Base exception for all texmd errors."""
    pass


class ConfigError(TexmdError, ValueError):
    """Raised when the pipeline is configured with unusable values."""
    pass


class SegmentKind(str, Enum):
    MATH = "math"
    PROSE = "prose"


class DiagnosticCode(str, Enum):
    UNTERMINATED_MATH = "unterminated_math"


@dataclass(frozen=True)
class Segment:
    """A contiguous span of the source document."""
    kind: SegmentKind
    index: int
    raw: str
    start: int = 0

    @property
    def end(self) -> int:
        return self.start + len(self.raw)

    @property
    def key(self) -> str:
        """Stable key for UI lists, e.g. ``math-3`` or ``text-0``."""
        prefix = "math" if self.kind == SegmentKind.MATH else "text"
        return f"{prefix}-{self.index}"


@dataclass(frozen=True)
class NormalizedSegment:
    index: int
    markdown: str


@dataclass(frozen=True)
class MathSegment:
    index: int
    math_source: str


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while processing a document."""
    code: DiagnosticCode
    message: str
    offset: int
    line: int
    column: int

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "offset": self.offset,
            "line": self.line,
            "column": self.column,
        }


@dataclass
class SegmentationResult:
    segments: List[Segment] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def malformed(self) -> bool:
        return bool(self.diagnostics)

    @property
    def source(self) -> str:
        return "".join(s.raw for s in self.segments)


Block = Union[MathSegment, NormalizedSegment]


@dataclass
class RenderPlan:
    """
    Everything the UI shell needs to lay out one document: the ordered
    blocks, the diagnostics collected on the way, and the configuration the
    math renderer must be invoked with.
    """
    blocks: List[Block]
    math_config: "MathRenderConfig"
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def math_blocks(self) -> List[MathSegment]:
        return [b for b in self.blocks if isinstance(b, MathSegment)]

    @property
    def markdown_blocks(self) -> List[NormalizedSegment]:
        return [b for b in self.blocks if isinstance(b, NormalizedSegment)]
