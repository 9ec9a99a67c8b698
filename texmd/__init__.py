"""Mixed LaTeX/Markdown document pipeline.

Splits a document into display-math and prose segments, rewrites the LaTeX
macros in the prose into Markdown, and hands both to external renderers in
reading order.
"""

from texmd.config import MathRenderConfig, PipelineConfig
from texmd.models import (
    ConfigError,
    Diagnostic,
    DiagnosticCode,
    MathSegment,
    NormalizedSegment,
    RenderPlan,
    Segment,
    SegmentationResult,
    SegmentKind,
    TexmdError,
)
from texmd.normalizer import Normalizer, normalize_text
from texmd.pipeline import dispatch, render_document
from texmd.rules import DEFAULT_RULES, MacroRule, build_rules
from texmd.segmenter import DisplayMathSegmenter, segment_document

__all__ = [
    "ConfigError",
    "DEFAULT_RULES",
    "Diagnostic",
    "DiagnosticCode",
    "DisplayMathSegmenter",
    "MacroRule",
    "MathRenderConfig",
    "MathSegment",
    "NormalizedSegment",
    "Normalizer",
    "PipelineConfig",
    "RenderPlan",
    "Segment",
    "SegmentKind",
    "SegmentationResult",
    "TexmdError",
    "build_rules",
    "dispatch",
    "normalize_text",
    "render_document",
    "segment_document",
]
