import re
from typing import List, Optional, Tuple

from loguru import logger

from texmd.config import PipelineConfig
from texmd.models import (
    Diagnostic, DiagnosticCode, Segment, SegmentationResult, SegmentKind
)


class DisplayMathSegmenter:
    """
    Splits a document into alternating prose and display-math segments.

    Display math is delimited by a literal open/close marker pair (``\\[`` and
    ``\\]`` by default). Blocks do not nest: a block ends at the first close
    marker after its opener, and both markers stay in the segment so the math
    payload is self-describing.

    The scanner treats ``\\\\`` (the line-break macro) as a single token, so
    ``\\\\[2pt]`` never opens a block and ``\\\\]`` never closes one.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self._open_pattern = self._token_pattern(self.config.math_open)
        self._close_pattern = self._token_pattern(self.config.math_close)

    @staticmethod
    def _token_pattern(marker: str) -> re.Pattern:
        # Group 1 is an escaped backslash pair, group 2 the marker itself.
        return re.compile(r"(\\\\)|(" + re.escape(marker) + ")")

    def segment(self, document: str) -> SegmentationResult:
        result = SegmentationResult()
        spans = self._scan(document, result.diagnostics)

        if self.config.drop_empty_segments:
            spans = [s for s in spans if s[2] > s[1]]
            if not spans:
                spans = [(SegmentKind.PROSE, 0, 0)]

        for index, (kind, start, end) in enumerate(spans):
            result.segments.append(
                Segment(kind=kind, index=index, raw=document[start:end], start=start)
            )

        math_count = sum(1 for s in result.segments if s.kind == SegmentKind.MATH)
        logger.debug(
            f"Segmented document ({len(document)} chars) into {len(result.segments)} "
            f"segments, {math_count} display-math."
        )
        return result

    def _scan(
        self, document: str, diagnostics: List[Diagnostic]
    ) -> List[Tuple[SegmentKind, int, int]]:
        spans: List[Tuple[SegmentKind, int, int]] = []
        prose_start = 0
        cursor = 0

        while cursor < len(document):
            match = self._open_pattern.search(document, cursor)
            if not match:
                break
            if match.group(1):
                cursor = match.end()
                continue

            open_pos = match.start()
            close_pos = self._find_close(document, match.end())
            if close_pos == -1:
                diagnostics.append(self._unterminated(document, open_pos))
                # The rest of the document stays in the current prose span.
                break

            block_end = close_pos + len(self.config.math_close)
            spans.append((SegmentKind.PROSE, prose_start, open_pos))
            spans.append((SegmentKind.MATH, open_pos, block_end))
            prose_start = cursor = block_end

        spans.append((SegmentKind.PROSE, prose_start, len(document)))
        return spans

    def _find_close(self, document: str, start_pos: int) -> int:
        """Returns the offset of the first unescaped close marker, or -1."""
        cursor = start_pos
        while True:
            match = self._close_pattern.search(document, cursor)
            if not match:
                return -1
            if match.group(2):
                return match.start()
            cursor = match.end()

    def _unterminated(self, document: str, offset: int) -> Diagnostic:
        line, column = _line_and_column(document, offset)
        message = (
            f"Display math opened with {self.config.math_open!r} at line {line}, "
            f"column {column} is never closed with {self.config.math_close!r}; "
            "keeping the remainder as prose."
        )
        logger.warning(message)
        return Diagnostic(
            code=DiagnosticCode.UNTERMINATED_MATH,
            message=message,
            offset=offset,
            line=line,
            column=column,
        )


def _line_and_column(content: str, offset: int) -> Tuple[int, int]:
    """1-based line and column of a character offset."""
    line = content.count("\n", 0, offset) + 1
    last_newline = content.rfind("\n", 0, offset)
    column = offset + 1 if last_newline == -1 else offset - last_newline
    return line, column


def segment_document(
    document: str, config: Optional[PipelineConfig] = None
) -> SegmentationResult:
    """Partition ``document`` into ordered math and prose segments.

    Never raises for document content; malformed input is reported through
    ``SegmentationResult.diagnostics``.
    """
    return DisplayMathSegmenter(config).segment(document)
