import re

import pytest

from texmd.config import PipelineConfig
from texmd.rules import (
    DEFAULT_RULES,
    ListEnvironmentRule,
    ListState,
    MacroRule,
    build_rules,
    collapse_blank_lines,
    read_braced_argument,
)


def test_rule_table_order():
    assert [r.name for r in DEFAULT_RULES] == [
        "section",
        "bold",
        "italic",
        "lists",
        "vspace",
        "skip",
        "line_break",
        "text",
        "hspace",
        "collapse",
    ]


def test_read_braced_argument_balances_nested_braces():
    text = r"\textbf{a {b} \} c}rest"
    start = text.index("{")

    inner, end = read_braced_argument(text, start)

    assert inner == r"a {b} \} c"
    assert text[end:] == "rest"


def test_read_braced_argument_missing_group_or_close():
    assert read_braced_argument("abc", 0) is None
    assert read_braced_argument("{never closed", 0) is None
    assert read_braced_argument("", 0) is None


def test_macro_rule_leaves_unparseable_arguments_alone():
    rule = MacroRule(
        name="bold",
        pattern=re.compile(r"\\textbf\s*"),
        replacement=lambda captures: f"**{captures[-1]}**",
        arguments=1,
    )

    assert rule.apply(r"\textbf{ok} and \textbf{broken") == r"**ok** and \textbf{broken"
    assert rule.apply(r"\textbf without braces") == r"\textbf without braces"


def test_macro_rule_applies_inside_its_own_argument():
    rule = MacroRule(
        name="text",
        pattern=re.compile(r"\\text\s*"),
        replacement=lambda captures: captures[-1],
        arguments=1,
    )

    assert rule.apply(r"\text{a \text{b} c}") == "a b c"


def test_list_rule_tracks_nearest_environment():
    rule = ListEnvironmentRule()
    text = (
        r"\begin{itemize}\item A"
        r"\begin{enumerate}\item B\item C\end{enumerate}"
        r"\item D\end{itemize}"
    )

    assert rule.apply(text) == "- A\n1. B\n2. C\n- D"


def test_list_rule_state_carries_between_calls():
    rule = ListEnvironmentRule()
    state = ListState()

    first = rule.apply("\\begin{enumerate}\n\\item one\n", state)
    second = rule.apply("\n\\item two\n\\end{enumerate}", state)

    assert first == "\n1. one\n"
    assert second == "\n2. two\n"
    assert state.stack == []


def test_list_rule_without_auto_numbering():
    rule = ListEnvironmentRule(auto_number=False)

    assert rule.apply(r"\begin{enumerate}\item X\item Y\end{enumerate}") == "1. X\n1. Y"


def test_list_rule_orphan_item_and_unmatched_end(log_messages):
    rule = ListEnvironmentRule()

    assert rule.apply(r"\item stray\end{enumerate}") == "- stray"
    assert any("unmatched" in r["message"] for r in log_messages)


def test_list_rule_item_label():
    rule = ListEnvironmentRule()

    assert rule.apply(r"\begin{itemize}\item[Note] text\end{itemize}") == "- **Note** text"


def test_list_rule_keeps_item_indentation():
    rule = ListEnvironmentRule()
    text = "\\begin{itemize}\n  \\item A\n  \\item B\n\\end{itemize}"

    assert rule.apply(text) == "\n  - A\n  - B\n"


def test_build_rules_uses_config():
    rules = build_rules(PipelineConfig(quad_width=2, heading_level=3))
    by_name = {r.name: r for r in rules}

    assert by_name["hspace"].apply(r"a\quad b") == "a   b"
    assert by_name["section"].apply(r"\subsection{S}") == "#### S"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "a\n\n\nb",
        "a\n \n\t\n\n  b",
        "\n\n\n\n",
        "x\n\ny\n\n\n\nz\n",
        "trailing\n\n\n   ",
    ],
)
def test_collapse_is_idempotent(text):
    once = collapse_blank_lines(text)

    assert collapse_blank_lines(once) == once
    assert "\n\n\n" not in once


def test_collapse_keeps_single_blank_line():
    assert collapse_blank_lines("a\n\nb") == "a\n\nb"
    assert collapse_blank_lines("a\n \n\t\nb") == "a\n\nb"
