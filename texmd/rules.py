"""LaTeX-to-Markdown rewrite rules.

Each rule is a pure text transformation. The normalizer folds a document's
prose through ``build_rules(config)`` in order, so a later rule never sees
the macros an earlier one already rewrote:

    1. section headers       5. \\text{} unwrapping
    2. inline emphasis       6. \\quad / \\qquad
    3. list environments     7. blank-line collapse
    4. vertical spacing and line breaks

Anything a rule does not recognise, including a macro whose brace argument
is never closed, is left exactly as written.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple

from loguru import logger

from texmd.config import PipelineConfig

Captures = Tuple[str, ...]

# A macro name ends at the first non-letter.
_NAME_END = r"(?![a-zA-Z])"


def read_braced_argument(text: str, pos: int) -> Optional[Tuple[str, int]]:
    """Read a ``{...}`` group starting at ``pos``.

    Nested braces are balanced and backslash escapes (``\\{``, ``\\}``,
    ``\\\\``) are skipped. Returns the inner text and the offset just past the
    closing brace, or ``None`` if there is no group at ``pos`` or it is never
    closed.
    """
    if pos >= len(text) or text[pos] != "{":
        return None

    depth = 0
    cursor = pos
    while cursor < len(text):
        ch = text[cursor]
        if ch == "\\":
            cursor += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[pos + 1:cursor], cursor + 1
        cursor += 1
    return None


def _escaped(text: str, pos: int) -> bool:
    """True if the backslash at ``pos`` is the second half of a ``\\\\`` pair."""
    if not text.startswith("\\", pos):
        return False
    run = 0
    while pos - run - 1 >= 0 and text[pos - run - 1] == "\\":
        run += 1
    return run % 2 == 1


def _end_line(text: str, cursor: int) -> Tuple[str, int]:
    """Line break to emit before ``text[cursor:]`` so it leaves the current line."""
    rest = text[cursor:]
    stripped = rest.lstrip(" \t")
    if not stripped or stripped.startswith("\n"):
        return "", cursor
    return "\n", cursor + len(rest) - len(stripped)


def _break_line(out: str) -> str:
    """Ensure the next character written to ``out`` starts a line."""
    trimmed = out.rstrip(" \t")
    if not trimmed or trimmed.endswith("\n"):
        return out
    return trimmed + "\n"


class Rule(Protocol):
    name: str

    def apply(self, text: str, state: Optional["ListState"] = None) -> str:
        ...


@dataclass(frozen=True)
class MacroRule:
    """
    A single rewrite: ``pattern`` matches the macro head, then ``arguments``
    brace groups are read after it. ``replacement`` receives the regex groups
    followed by the argument texts.

    With ``own_line`` set, the replacement is put on a line of its own.
    """
    name: str
    pattern: re.Pattern
    replacement: Callable[[Captures], str]
    arguments: int = 0
    own_line: bool = False

    def apply(self, text: str, state: Optional["ListState"] = None) -> str:
        out = ""
        cursor = 0
        for match in self.pattern.finditer(text):
            if match.start() < cursor:
                # Inside an argument that was already consumed.
                continue
            if _escaped(text, match.start()):
                continue

            args = self._read_arguments(text, match.end())
            if args is None:
                continue
            values, end = args

            out += text[cursor:match.start()]
            if self.own_line:
                out = _break_line(out)
            out += self.replacement(match.groups() + values)
            cursor = end
            if self.own_line:
                line_end, cursor = _end_line(text, cursor)
                out += line_end

        return out + text[cursor:]

    def _read_arguments(self, text: str, pos: int) -> Optional[Tuple[Captures, int]]:
        values: List[str] = []
        for _ in range(self.arguments):
            group = read_braced_argument(text, pos)
            if group is None:
                return None
            inner, pos = group
            # The same macro may be nested inside its own argument.
            values.append(self.apply(inner))
        return tuple(values), pos


@dataclass
class ListFrame:
    kind: str
    counter: int = 0


@dataclass
class ListState:
    """Open list environments, innermost last.

    Shared across the prose segments of one document: a display-math block
    inside a list splits the list over several segments.
    """
    stack: List[ListFrame] = field(default_factory=list)

    @property
    def current(self) -> Optional[ListFrame]:
        return self.stack[-1] if self.stack else None

    def open(self, kind: str) -> None:
        self.stack.append(ListFrame(kind=kind))

    def close(self, kind: str) -> bool:
        for depth in range(len(self.stack) - 1, -1, -1):
            if self.stack[depth].kind == kind:
                del self.stack[depth:]
                return True
        return False


_LIST_TOKEN = re.compile(
    r"\\(?P<edge>begin|end)\s*\{(?P<env>itemize|enumerate)\}"
    r"|\\item" + _NAME_END + r"(?:\s*\[(?P<label>[^\]]*)\])?\s*"
)


@dataclass(frozen=True)
class ListEnvironmentRule:
    """
    Removes itemize/enumerate markers and turns each ``\\item`` into the list
    marker of its nearest enclosing environment.
    """
    auto_number: bool = True
    name: str = "lists"

    def apply(self, text: str, state: Optional[ListState] = None) -> str:
        if state is None:
            state = ListState()

        out = ""
        cursor = 0
        for match in _LIST_TOKEN.finditer(text):
            if _escaped(text, match.start()):
                continue
            out += text[cursor:match.start()]
            cursor = match.end()

            edge = match.group("edge")
            if edge == "begin":
                state.open(match.group("env"))
            elif edge == "end":
                if not state.close(match.group("env")):
                    logger.debug(f"Dropping unmatched \\end{{{match.group('env')}}}.")
            else:
                out = _break_line(out) + self._marker(state, match.group("label"))

        return out + text[cursor:]

    def _marker(self, state: ListState, label: Optional[str]) -> str:
        frame = state.current
        if frame is None:
            logger.debug("\\item outside any list environment; rendering as a bullet.")
            marker = "- "
        elif frame.kind == "enumerate":
            frame.counter += 1
            number = frame.counter if self.auto_number else 1
            marker = f"{number}. "
        else:
            marker = "- "

        label = (label or "").strip()
        if label:
            marker += f"**{label}** "
        return marker


def _emphasis(marker: str) -> Callable[[Captures], str]:
    def wrap(captures: Captures) -> str:
        arg = captures[-1]
        core = arg.strip()
        if not core:
            return arg
        lead = arg[:len(arg) - len(arg.lstrip())]
        trail = arg[len(arg.rstrip()):]
        return f"{lead}{marker}{core}{marker}{trail}"
    return wrap


# Three or more newlines, with only whitespace between them.
COLLAPSE_PATTERN = re.compile(r"\n\s*\n\s*\n")


def collapse_blank_lines(text: str) -> str:
    return COLLAPSE_PATTERN.sub("\n\n", text)


_SECTION_DEPTH = {"section": 0, "subsection": 1, "subsubsection": 2}


def _heading(base_level: int) -> Callable[[Captures], str]:
    def render(captures: Captures) -> str:
        command, title = captures
        level = min(base_level + _SECTION_DEPTH[command], 6)
        return "#" * level + " " + title.strip()
    return render


def build_rules(config: Optional[PipelineConfig] = None) -> Tuple[Rule, ...]:
    """The ordered rewrite table for ``config``."""
    config = config or PipelineConfig()
    quad = " " * config.quad_width

    return (
        MacroRule(
            name="section",
            pattern=re.compile(r"\\(section|subsection|subsubsection)\*?\s*"),
            replacement=_heading(config.heading_level),
            arguments=1,
            own_line=True,
        ),
        MacroRule(
            name="bold",
            pattern=re.compile(r"\\textbf" + _NAME_END + r"\s*"),
            replacement=_emphasis("**"),
            arguments=1,
        ),
        MacroRule(
            name="italic",
            pattern=re.compile(r"\\(?:emph|textit)" + _NAME_END + r"\s*"),
            replacement=_emphasis("*"),
            arguments=1,
        ),
        ListEnvironmentRule(auto_number=config.auto_number_enumerate),
        MacroRule(
            name="vspace",
            pattern=re.compile(r"\\vspace\*?\s*"),
            replacement=lambda captures: "\n\n",
            arguments=1,
        ),
        MacroRule(
            name="skip",
            pattern=re.compile(r"\\(?:small|med|big)skip" + _NAME_END),
            replacement=lambda captures: "\n\n",
        ),
        MacroRule(
            name="line_break",
            pattern=re.compile(r"\\\\(?:\[[^\]]*\])?|\\newline" + _NAME_END),
            replacement=lambda captures: "\n",
        ),
        MacroRule(
            name="text",
            pattern=re.compile(r"\\text" + _NAME_END + r"\s*"),
            replacement=lambda captures: captures[-1],
            arguments=1,
        ),
        MacroRule(
            name="hspace",
            pattern=re.compile(r"\\(q?quad)" + _NAME_END),
            replacement=lambda captures: quad * (2 if captures[0] == "qquad" else 1),
        ),
        MacroRule(
            name="collapse",
            pattern=COLLAPSE_PATTERN,
            replacement=lambda captures: "\n\n",
        ),
    )


DEFAULT_RULES: Tuple[Rule, ...] = build_rules()
