from __future__ import annotations

import pytest

from fencesmith.core.grammar import ScopeMappings


def _tree(node_factory):
    # call(identifier "print", arguments("(", identifier "x", ")"))
    call = node_factory("call", True, 0, 8)
    func = node_factory("identifier", True, 0, 5, parent=call)
    args = node_factory("arguments", True, 5, 8, parent=call)
    open_paren = node_factory("(", False, 5, 6, parent=args)
    arg = node_factory("identifier", True, 6, 7, parent=args)
    close_paren = node_factory(")", False, 7, 8, parent=args)
    call.children = [func, args]
    args.children = [open_paren, arg, close_paren]
    return call, func, arg, open_paren


SOURCE = b"print(x)"


def test_named_and_anonymous_steps(node_factory) -> None:
    _, func, _, paren = _tree(node_factory)
    mappings = ScopeMappings({"identifier": "variable", '"("': "punctuation.bracket"})

    assert mappings.scopes_for(func, SOURCE) == ["variable"]
    assert mappings.scopes_for(paren, SOURCE) == ["punctuation.bracket"]


def test_anonymous_selector_does_not_match_named_node(node_factory) -> None:
    _, func, _, _ = _tree(node_factory)
    mappings = ScopeMappings({'"identifier"': "keyword"})

    assert mappings.scopes_for(func, SOURCE) == []


def test_child_chains_beat_bare_selectors(node_factory) -> None:
    _, func, arg, _ = _tree(node_factory)
    mappings = ScopeMappings(
        {"identifier": "variable", "call > identifier": "entity.name.function"}
    )

    assert mappings.scopes_for(func, SOURCE) == ["entity.name.function"]
    assert mappings.scopes_for(arg, SOURCE) == ["variable"]


def test_nth_child_filters_by_position(node_factory) -> None:
    _, _, arg, _ = _tree(node_factory)
    mappings = ScopeMappings(
        {
            "arguments > identifier:nth-child(1)": "variable.parameter",
            "arguments > identifier:nth-child(0)": "invalid",
        }
    )

    assert mappings.scopes_for(arg, SOURCE) == ["variable.parameter"]


def test_comma_groups_share_a_value(node_factory) -> None:
    _, func, _, paren = _tree(node_factory)
    mappings = ScopeMappings({'identifier, "("': "shared"})

    assert mappings.scopes_for(func, SOURCE) == ["shared"]
    assert mappings.scopes_for(paren, SOURCE) == ["shared"]
    assert mappings.selectors == ["identifier", '"("']
    assert len(mappings) == 2


def test_quoted_commas_and_arrows_are_literals(node_factory) -> None:
    comma = node_factory(",", False, 0, 1)
    arrow = node_factory("=>", False, 0, 2)
    mappings = ScopeMappings({'",", "=>"': "punctuation"})

    assert mappings.scopes_for(comma, b",") == ["punctuation"]
    assert mappings.scopes_for(arrow, b"=>") == ["punctuation"]


def test_list_values_apply_together(node_factory) -> None:
    _, func, _, _ = _tree(node_factory)
    mappings = ScopeMappings({"identifier": ["variable", "meta.name"]})

    assert mappings.scopes_for(func, SOURCE) == ["variable", "meta.name"]


def test_conditional_alternatives_use_node_text(node_factory) -> None:
    _, func, arg, _ = _tree(node_factory)
    mappings = ScopeMappings(
        {
            "identifier": [
                {"exact": "print", "scopes": "support.function"},
                {"match": "^[A-Z]", "scopes": "constant"},
                "variable",
            ]
        }
    )

    assert mappings.scopes_for(func, SOURCE) == ["support.function"]
    assert mappings.scopes_for(arg, SOURCE) == ["variable"]


def test_conditional_without_fallback_yields_nothing(node_factory) -> None:
    _, _, arg, _ = _tree(node_factory)
    mappings = ScopeMappings({"identifier": {"match": "^[A-Z]", "scopes": "constant"}})

    assert mappings.scopes_for(arg, SOURCE) == []


def test_failed_specific_conditional_falls_back_to_general_rule(node_factory) -> None:
    _, func, _, _ = _tree(node_factory)
    mappings = ScopeMappings(
        {
            "identifier": "variable",
            "call > identifier": {"exact": "len", "scopes": "support.function"},
        }
    )

    assert mappings.scopes_for(func, SOURCE) == ["variable"]


@pytest.mark.parametrize(
    "table",
    [
        {"": "scope"},
        {"identifier >": "scope"},
        {'"unterminated': "scope"},
        {"identifier:nth-child(x)": "scope"},
        {"identifier": {"match": "(", "scopes": "scope"}},
        {"identifier": {"exact": "x"}},
        {"identifier": {"exact": "x", "scopes": "s", "color": "red"}},
        {"identifier": 42},
    ],
)
def test_invalid_tables_are_rejected(table) -> None:
    with pytest.raises(ValueError):
        ScopeMappings(table)
