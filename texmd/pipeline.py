"""
Runs a document through segmentation and normalization and hands the result
to the math and Markdown renderers.

The renderers themselves live outside this package; any callable with the
right shape can be passed to :func:`dispatch`.
"""
from __future__ import annotations

from typing import Any, List, Optional, Protocol

from loguru import logger

from texmd.config import MathRenderConfig, PipelineConfig
from texmd.models import MathSegment, NormalizedSegment, RenderPlan
from texmd.normalizer import Normalizer
from texmd.segmenter import DisplayMathSegmenter


class MathRenderer(Protocol):
    def __call__(self, math_source: str, config: MathRenderConfig) -> Any:
        ...


class MarkdownRenderer(Protocol):
    def __call__(self, markdown: str) -> Any:
        ...


def render_document(document: str, config: Optional[PipelineConfig] = None) -> RenderPlan:
    """Segment ``document`` and normalize its prose.

    Returns the blocks in reading order together with any diagnostics and
    the math renderer configuration. Never raises for document content.
    """
    config = config or PipelineConfig()

    segmentation = DisplayMathSegmenter(config).segment(document)
    blocks = Normalizer(config).normalize_segments(segmentation.segments)

    plan = RenderPlan(
        blocks=blocks,
        math_config=config.math,
        diagnostics=list(segmentation.diagnostics),
    )
    logger.success(
        f"Prepared {len(plan.markdown_blocks)} Markdown and {len(plan.math_blocks)} "
        f"math blocks ({len(plan.diagnostics)} diagnostics)."
    )
    return plan


def dispatch(
    plan: RenderPlan,
    math_renderer: MathRenderer,
    markdown_renderer: MarkdownRenderer,
) -> List[Any]:
    """Invoke the renderers in ascending block index and collect their output.

    Renderer exceptions propagate to the caller.
    """
    rendered: List[Any] = []
    for block in sorted(plan.blocks, key=lambda b: b.index):
        if isinstance(block, MathSegment):
            rendered.append(math_renderer(block.math_source, plan.math_config))
        elif isinstance(block, NormalizedSegment):
            rendered.append(markdown_renderer(block.markdown))
        else:
            raise TypeError(f"Unexpected block type: {type(block).__name__}")
    return rendered
