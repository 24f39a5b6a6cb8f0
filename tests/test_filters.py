import pytest

from apps.svix.filters import (
    ACCEPT_WRAPPER,
    FilterStrategy,
    MultiFieldFilter,
    SimpleFieldFilter,
    build_routing_filter,
    escape_js_string,
    extract_literal,
    extract_literals,
    unescape_js_string,
)

TRICKY_VALUES = [
    "acct_1",
    "",
    "it's",
    "'; return { payload: input }; //",
    "back\\slash",
    "trailing\\",
    "line\nbreak\r\ttab",
    "\\'",
    "unicode ✓ ünïcødé",
    "bell\x07nul\x00del\x7f",
    "sep\u2028par\u2029",
]


def test_stripe_filter_matches_expected_script():
    script = SimpleFieldFilter("account", "acct_123").build()
    assert script == (
        "function handler(input) {\n"
        "    if (input.account !== 'acct_123') return null;\n"
        "    return { payload: input };\n"
        "}"
    )


def test_nested_field_path():
    script = build_routing_filter("links.organisation", "OR000123")
    assert "if (input.links.organisation !== 'OR000123') return null;" in script
    assert ACCEPT_WRAPPER in script


@pytest.mark.parametrize("value", TRICKY_VALUES)
def test_embedded_literal_round_trips(value):
    script = build_routing_filter("account", value)
    assert unescape_js_string(extract_literal(script)) == value
    assert "input.account !== '" in script
    assert ACCEPT_WRAPPER in script


def test_single_quote_never_appears_raw():
    value = "x' || true || '"
    script = build_routing_filter("account", value)
    assert value not in script
    assert len(extract_literals(script)) == 1


def test_control_characters_do_not_break_lines():
    script = build_routing_filter("account", "a\nb")
    assert len(script.splitlines()) == 4


def test_escape_rules():
    assert escape_js_string("'") == "\\'"
    assert escape_js_string("\\") == "\\\\"
    assert escape_js_string("\n\r\t") == "\\n\\r\\t"
    assert escape_js_string("\x01") == "\\u0001"


def test_build_is_deterministic():
    assert build_routing_filter("account", "acct_9") == build_routing_filter("account", "acct_9")


@pytest.mark.parametrize("field", ["", "account;alert(1)", "links..organisation", "1abc", "a b", "a['b']"])
def test_invalid_field_paths_rejected(field):
    with pytest.raises(ValueError):
        SimpleFieldFilter(field, "value")


def test_multi_field_filter_checks_every_condition():
    script = MultiFieldFilter({"account": "acct_1", "data.object.livemode": "true"}).build()
    assert "if (input.account !== 'acct_1') return null;" in script
    assert "if (input.data.object.livemode !== 'true') return null;" in script
    assert [unescape_js_string(item) for item in extract_literals(script)] == ["acct_1", "true"]


def test_multi_field_filter_requires_conditions():
    with pytest.raises(ValueError):
        MultiFieldFilter({})


def test_strategies_share_build_capability():
    strategies = [SimpleFieldFilter("account", "a"), MultiFieldFilter({"account": "a"})]
    for strategy in strategies:
        assert isinstance(strategy, FilterStrategy)
        assert strategy.build().startswith("function handler(input) {")


def test_unescape_rejects_unknown_sequences():
    with pytest.raises(ValueError):
        unescape_js_string("\\x41")
