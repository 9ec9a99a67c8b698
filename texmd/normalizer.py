from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from texmd.config import PipelineConfig
from texmd.models import Block, MathSegment, NormalizedSegment, Segment, SegmentKind
from texmd.rules import DEFAULT_RULES, ListState, Rule, build_rules


class Normalizer:
    """Rewrites the LaTeX macros in prose into Markdown.

    Rules run in table order over the whole text. Text no rule recognises is
    passed through untouched, so the result is always a string.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        rules: Optional[Sequence[Rule]] = None,
    ):
        self.config = config or PipelineConfig()
        if rules is not None:
            self.rules = tuple(rules)
        elif config is None:
            self.rules = DEFAULT_RULES
        else:
            self.rules = build_rules(self.config)

    def normalize_text(self, text: str, state: Optional[ListState] = None) -> str:
        if state is None:
            state = ListState()
        for rule in self.rules:
            text = rule.apply(text, state)
        return text

    def normalize_segment(
        self, segment: Segment, state: Optional[ListState] = None
    ) -> NormalizedSegment:
        if segment.kind != SegmentKind.PROSE:
            raise ValueError(f"Only prose segments are normalized, got {segment.key}.")
        return NormalizedSegment(
            index=segment.index, markdown=self.normalize_text(segment.raw, state)
        )

    def normalize_segments(self, segments: Sequence[Segment]) -> List[Block]:
        """
        Normalizes one document's segments in index order.

        List state carries from one prose segment to the next, so items after
        a display-math block still know which list they belong to. Math
        segments are carried through unchanged.
        """
        state = ListState()
        blocks: List[Block] = []
        for segment in sorted(segments, key=lambda s: s.index):
            if segment.kind == SegmentKind.MATH:
                blocks.append(MathSegment(index=segment.index, math_source=segment.raw))
            else:
                blocks.append(self.normalize_segment(segment, state))

        if state.stack:
            logger.debug(
                "Document ended with unclosed list environments: "
                + ", ".join(f.kind for f in state.stack)
            )
        return blocks


def normalize_text(text: str, config: Optional[PipelineConfig] = None) -> str:
    """Normalize a single run of prose into Markdown."""
    return Normalizer(config).normalize_text(text)
