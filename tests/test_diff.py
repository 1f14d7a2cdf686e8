"""
Unit tests for the JSON config diff.

Record order is only asserted where position is part of the meaning
(index-based array comparison); elsewhere records are looked up by key.
"""

from __future__ import annotations

import copy

import pytest

from project_migrator.modules.migrate.diff import (
    JsonKind,
    calculate_diff,
    format_value,
    is_reserved_secret,
    json_diff,
    json_equal,
    json_kind,
)
from project_migrator.modules.migrate.schemas import DiffEntry


def by_key(diffs: list[DiffEntry]) -> dict[str, DiffEntry]:
    keyed = {d.key: d for d in diffs}
    assert len(keyed) == len(diffs), "duplicate keys in diff output"
    return keyed


SAMPLE_VALUES = [
    None,
    True,
    0,
    -12.5,
    "",
    "text",
    [],
    {},
    [1, "two", None, False],
    {"a": 1, "b": {"c": [1, 2, {"d": "e"}]}},
    [{"id": "f1", "version": 3}, {"id": "f2", "entrypoint": "index.ts"}],
    [{"name": "MY_SECRET", "value": "x"}, {"name": "SUPABASE_URL", "value": "y"}],
    {"functions": [{"id": "hello", "verify_jwt": True, "import_map": None}]},
    [[1, 2], [3, [4, 5]]],
]


@pytest.mark.parametrize("value", SAMPLE_VALUES)
@pytest.mark.parametrize("config_type", ["Auth", "Secrets"])
def test_identical_values_produce_no_result(config_type: str, value) -> None:
    assert json_diff(config_type, value, copy.deepcopy(value)) is None


@pytest.mark.parametrize(
    ("a", "b"),
    [
        ({"a": 1}, {"a": 2}),
        ({"a": 1}, {}),
        ([1, 2, 3], [1, 2]),
        ([{"id": "x"}], []),
        ([{"id": "x"}], [{"name": "x"}]),
        ([{"name": "x", "v": 1}], [{"name": "x", "v": 2}]),
        (1, "1"),
        (None, False),
        ([], {}),
    ],
)
def test_difference_detection_is_symmetric(a, b) -> None:
    assert json_diff("Auth", a, b) is not None
    assert json_diff("Auth", b, a) is not None


def test_object_field_change_and_addition() -> None:
    result = json_diff("test", {"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4})

    assert result is not None
    assert result.name == "test"
    assert len(result.diffs) == 2

    diffs = by_key(result.diffs)
    assert (diffs["b"].source_value, diffs["b"].dest_value) == ("2", "3")
    assert (diffs["c"].source_value, diffs["c"].dest_value) == ("null", "4")


def test_object_field_removal() -> None:
    diffs = by_key(calculate_diff("test", {"a": 1, "gone": {"x": True}}, {"a": 1}))
    assert diffs["gone"].source_value == '{"x":true}'
    assert diffs["gone"].dest_value == "null"


def test_nested_object_paths() -> None:
    source = {
        "user": {
            "name": "John",
            "age": 30,
            "address": {"street": "123 Main St", "city": "Boston"},
        }
    }
    dest = {
        "user": {
            "name": "John",
            "age": 31,
            "address": {"street": "123 Main St", "city": "New York", "zip": "10001"},
        }
    }

    diffs = by_key(calculate_diff("test", source, dest))

    assert set(diffs) == {"user.age", "user.address.city", "user.address.zip"}
    assert diffs["user.age"].dest_value == "31"
    assert diffs["user.address.city"].dest_value == "New York"
    assert diffs["user.address.zip"].source_value == "null"


def test_identity_matched_array_full_removal() -> None:
    source = [{"id": "f1", "v": 1}, {"id": "f2", "v": 1}]

    diffs = by_key(calculate_diff("test", source, []))

    assert set(diffs) == {"id:f1", "id:f2"}
    assert "length" not in diffs
    assert all(d.dest_value == "null" for d in diffs.values())
    assert diffs["id:f1"].source_value == '{"id":"f1","v":1}'


def test_identity_matching_ignores_position() -> None:
    source = [{"id": "a", "v": 1}, {"id": "b", "v": 1}]
    dest = [{"id": "b", "v": 2}, {"id": "a", "v": 1}, {"id": "c"}]

    diffs = by_key(calculate_diff("test", source, dest))

    assert set(diffs) == {"id:b.v", "id:c"}
    assert (diffs["id:b.v"].source_value, diffs["id:b.v"].dest_value) == ("1", "2")
    assert (diffs["id:c"].source_value, diffs["id:c"].dest_value) == ("null", '{"id":"c"}')


def test_identity_path_below_object_key() -> None:
    source = {"functions": [{"id": "hello", "version": 1}]}
    dest = {"functions": [{"id": "hello", "version": 2}]}

    diffs = by_key(calculate_diff("EdgeFunctions", source, dest))

    assert set(diffs) == {"functions.id:hello.version"}


def test_only_source_has_ids_everything_removed() -> None:
    diffs = calculate_diff("test", [{"id": "a"}], [{"name": "x"}])

    assert diffs == [DiffEntry(key="id:a", source_value='{"id":"a"}', dest_value="null")]


def test_only_dest_has_ids_everything_added() -> None:
    diffs = calculate_diff("test", [1, 2], [{"id": "z", "enabled": True}])

    assert diffs == [DiffEntry(key="id:z", source_value="null", dest_value='{"enabled":true,"id":"z"}')]


def test_elements_without_id_are_skipped_in_identity_mode() -> None:
    source = [{"id": "a", "v": 1}, {"name": "anonymous"}]
    dest = [{"id": "a", "v": 1}, {"name": "renamed"}]

    assert calculate_diff("test", source, dest) == []


def test_repeated_id_keeps_last_element() -> None:
    source = [{"id": "a", "v": 1}, {"id": "a", "v": 2}]
    dest = [{"id": "a", "v": 2}]

    assert json_diff("test", source, dest) is None


def test_non_string_id_falls_back_to_index() -> None:
    diffs = calculate_diff("test", [{"id": 1, "v": 1}], [{"id": 1, "v": 2}])

    assert [d.key for d in diffs] == ["[0]"]


def test_index_fallback_scalars() -> None:
    diffs = calculate_diff("test", [1, 2, 3, 4], [1, 2, 5])

    assert diffs == [
        DiffEntry(key="[2]", source_value="3", dest_value="5"),
        DiffEntry(key="[3]", source_value="4", dest_value="null"),
    ]


def test_index_fallback_addition() -> None:
    diffs = calculate_diff("test", {"tags": ["a"]}, {"tags": ["a", "b"]})

    assert diffs == [DiffEntry(key="tags[1]", source_value="null", dest_value="b")]


def test_index_fallback_whole_object_replacement() -> None:
    source = [{"name": "item1", "value": 100, "active": True}]
    dest = [{"name": "item1", "value": 200, "active": True}]

    diffs = calculate_diff("test", source, dest)

    assert len(diffs) == 1
    assert diffs[0].key == "[0]"
    assert diffs[0].source_value == '{"active":true,"name":"item1","value":100}'
    assert diffs[0].dest_value == '{"active":true,"name":"item1","value":200}'
    assert '"value":100' in diffs[0].source_value


def test_index_fallback_equal_objects_produce_nothing() -> None:
    value = [{"name": "a", "nested": {"x": [1, 2]}}]
    assert calculate_diff("test", value, copy.deepcopy(value)) == []


def test_index_fallback_recurses_into_nested_arrays() -> None:
    diffs = calculate_diff("test", [[1, 2]], [[1, 3]])

    assert diffs == [DiffEntry(key="[0][1]", source_value="2", dest_value="3")]


def test_index_fallback_object_against_scalar() -> None:
    diffs = calculate_diff("test", [{"a": 1}], [5])

    assert diffs == [DiffEntry(key="[0]", source_value='{"a":1}', dest_value="5")]


def test_scalar_mismatch_at_root_uses_root_key() -> None:
    diffs = calculate_diff("test", 1, "1")

    assert diffs == [DiffEntry(key="root", source_value="1", dest_value="1")]


def test_container_type_mismatch_is_one_record() -> None:
    diffs = calculate_diff("test", {"hooks": []}, {"hooks": {}})

    assert diffs == [DiffEntry(key="hooks", source_value="[]", dest_value="{}")]


def test_boolean_never_equals_number() -> None:
    diffs = calculate_diff("test", {"a": True}, {"a": 1})

    assert diffs == [DiffEntry(key="a", source_value="true", dest_value="1")]


def test_integer_and_float_with_same_value_differ() -> None:
    diffs = calculate_diff("test", {"max_rows": 1000}, {"max_rows": 1000.0})

    assert diffs == [DiffEntry(key="max_rows", source_value="1000", dest_value="1000.0")]


def test_no_length_record_for_any_array_shape() -> None:
    cases = [
        ([1, 2, 3], []),
        ([], [{"id": "a"}]),
        ([{"name": "a"}], [{"name": "a"}, {"name": "b"}]),
    ]
    for source, dest in cases:
        keys = [d.key for d in calculate_diff("test", source, dest)]
        assert not any("length" in k for k in keys)


SECRETS_SOURCE = [
    {"name": "MY_SECRET", "updated_at": "2025-01-01T00:00:00Z", "value": "secret1"},
    {"name": "SUPABASE_URL", "updated_at": "2025-01-01T00:00:00Z", "value": "old_url"},
    {"name": "ANOTHER_SECRET", "updated_at": "2025-01-01T00:00:00Z", "value": "secret2"},
]
SECRETS_DEST = [
    {"name": "MY_SECRET", "updated_at": "2025-01-02T00:00:00Z", "value": "secret1_new"},
    {"name": "SUPABASE_URL", "updated_at": "2025-01-02T00:00:00Z", "value": "new_url"},
    {"name": "SUPABASE_ANON_KEY", "updated_at": "2025-01-02T00:00:00Z", "value": "anon_key"},
]


def test_secrets_filter_drops_platform_entries() -> None:
    result = json_diff("Secrets", SECRETS_SOURCE, SECRETS_DEST)

    assert result is not None
    diffs = by_key(result.diffs)
    assert set(diffs) == {"[0]", "[1]"}
    assert "MY_SECRET" in diffs["[0]"].dest_value
    assert "ANOTHER_SECRET" in diffs["[1]"].source_value
    assert diffs["[1]"].dest_value == "null"

    for d in result.diffs:
        assert "SUPABASE_" not in d.source_value
        assert "SUPABASE_" not in d.dest_value


def test_secrets_filter_only_for_secrets_category() -> None:
    result = json_diff("Auth", SECRETS_SOURCE, SECRETS_DEST)

    assert result is not None
    assert any("SUPABASE_" in d.dest_value for d in result.diffs)


def test_secrets_filter_only_when_both_sides_are_arrays() -> None:
    source = [{"name": "SUPABASE_URL", "value": "x"}]

    diffs = calculate_diff("Secrets", source, {})

    assert len(diffs) == 1
    assert diffs[0].key == "root"
    assert "SUPABASE_URL" in diffs[0].source_value


def test_secrets_only_platform_entries_is_no_difference() -> None:
    source = [{"name": "SUPABASE_URL", "value": "a"}]
    dest = [{"name": "SUPABASE_URL", "value": "b"}, {"name": "SUPABASE_DB_URL", "value": "c"}]

    assert json_diff("Secrets", source, dest) is None


def test_secrets_category_label_is_case_sensitive() -> None:
    source = [{"name": "SUPABASE_URL", "value": "a"}]
    dest = [{"name": "SUPABASE_URL", "value": "b"}]

    assert json_diff("secrets", source, dest) is not None


def test_is_reserved_secret() -> None:
    assert is_reserved_secret({"name": "SUPABASE_SERVICE_ROLE_KEY"})
    assert not is_reserved_secret({"name": "supabase_url"})
    assert not is_reserved_secret({"name": "MY_SUPABASE_URL"})
    assert not is_reserved_secret({"name": 42})
    assert not is_reserved_secret({"value": "SUPABASE_URL"})
    assert not is_reserved_secret("SUPABASE_URL")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain text", "plain text"),
        ('with "quotes"', 'with "quotes"'),
        (None, "null"),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (-7, "-7"),
        (1.5, "1.5"),
        (1e20, "1e20"),
        (1.5e-07, "1.5e-7"),
        (-2e-300, "-2e-300"),
        ([1, "a", None], '[1,"a",null]'),
        ({"b": 1, "a": {"z": [], "y": "é"}}, '{"a":{"y":"é","z":[]},"b":1}'),
    ],
)
def test_format_value(value, expected: str) -> None:
    assert format_value(value) == expected


def test_format_value_is_stable() -> None:
    value = {"z": [3, {"k": "v", "a": None}], "a": 1.25}
    assert format_value(value) == format_value(copy.deepcopy(value))


def test_json_kind() -> None:
    assert json_kind(None) is JsonKind.NULL
    assert json_kind(False) is JsonKind.BOOL
    assert json_kind(3) is JsonKind.NUMBER
    assert json_kind(3.0) is JsonKind.NUMBER
    assert json_kind("3") is JsonKind.STRING
    assert json_kind([]) is JsonKind.ARRAY
    assert json_kind({}) is JsonKind.OBJECT
    with pytest.raises(TypeError):
        json_kind(object())


def test_json_equal() -> None:
    assert json_equal({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]})
    assert not json_equal({"a": 1}, {"a": 1, "b": 2})
    assert not json_equal([1, 2], [2, 1])
    assert not json_equal(0, False)
    assert not json_equal(None, "null")
    assert not json_equal(1, 1.0)
    assert json_equal(2.5, 2.5)
    assert json_equal(float("nan"), float("nan"))
