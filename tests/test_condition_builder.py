"""Tests for strict-condition rendering."""

import pytest

from gridquery.errors import ValidationError
from gridquery.filters import AND, OR, FieldCondition, Keyword, parse_condition_items
from gridquery.query import build_strict_condition


def test_empty_and_non_sequence_input_give_empty_fragment():
    for items in ([], (), None, "tenant_id", {"tenant_id": 7}):
        frag = build_strict_condition(items)
        assert frag.sql == ""
        assert frag.bindings == []
        assert not frag


def test_single_field_condition_is_parenthesized():
    frag = build_strict_condition([FieldCondition("tenant_id", 7)])

    assert frag.sql == "(`tenant_id` = %s)"
    assert frag.bindings == [7]


def test_keywords_are_upper_cased_and_kept_in_place():
    items = [
        FieldCondition("tenant_id", 7),
        Keyword("and"),
        FieldCondition("status", "archived", "<>"),
        OR,
        FieldCondition("owner_id", 3),
    ]

    frag = build_strict_condition(items, paramstyle="qmark")

    assert frag.sql == "(`tenant_id` = ? AND `status` <> ? OR `owner_id` = ?)"
    assert frag.bindings == [7, "archived", 3]


def test_loose_shapes_are_accepted():
    frag = build_strict_condition(
        [{"tenant_id": 7}, "and", {"name": "a%", "operator": "LIKE"}],
        paramstyle="qmark",
    )

    assert frag.sql == "(`tenant_id` = ? AND `name` LIKE ?)"
    assert frag.bindings == [7, "a%"]


def test_binding_count_and_order_match_field_conditions():
    items = [
        FieldCondition("a", 1),
        AND,
        Keyword("("),
        FieldCondition("b", 2),
        OR,
        FieldCondition("c", 3),
        Keyword(")"),
        AND,
        Keyword("NOT"),
        FieldCondition("d", 4),
    ]

    frag = build_strict_condition(items)

    assert frag.bindings == [1, 2, 3, 4]
    assert frag.sql.count("%s") == 4


def test_field_names_are_quoted_values_never_inlined():
    frag = build_strict_condition([FieldCondition("we`ird", "x'); DROP TABLE t; --")])

    assert frag.sql == "(`we``ird` = %s)"
    assert "DROP" not in frag.sql


def test_mapping_without_field_is_skipped():
    assert parse_condition_items([{"operator": "="}, "and"]) == [Keyword("AND")]


def test_unsupported_item_raises():
    with pytest.raises(ValidationError):
        parse_condition_items([42])
