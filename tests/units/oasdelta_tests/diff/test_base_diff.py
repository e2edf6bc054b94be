import pytest

from oasdelta.diff.base import (
    Direction,
    MapDiff,
    StringsDiff,
    ValueDiff,
    deref,
    diff_collections,
    get_extensions_diff,
    get_map_diff,
    get_strings_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from oasdelta.errors import MalformedReferenceError
from oasdelta.spec import Schema


@pytest.mark.parametrize(
    "value1,value2",
    [
        (1, 1),
        ("a", "a"),
        (None, None),
        ([1, 2], [1, 2]),
        ({"a": 1}, {"a": 1}),
    ],
)
def test_get_value_diff_equal(value1, value2):
    assert get_value_diff(value1, value2) is None


@pytest.mark.parametrize(
    "value1,value2",
    [
        (1, 2),
        (None, "a"),
        ("a", None),
        (True, 1),
        (0, False),
    ],
)
def test_get_value_diff_changed(value1, value2):
    diff = get_value_diff(value1, value2)
    assert diff is not None
    assert diff.from_ == value1 and diff.to == value2
    assert not diff.empty()


def test_get_value_diff_conditional():
    assert get_value_diff_conditional(True, "a", "b") is None
    assert get_value_diff_conditional(False, "a", "b") == ValueDiff(from_="a", to="b")


def test_value_diff_serializes_with_from_alias():
    assert ValueDiff(from_=None, to=3).to_dict() == {"from": None, "to": 3}


@pytest.mark.parametrize(
    "from_,to,expected",
    [
        (None, True, True),
        (False, True, True),
        (True, False, False),
        (True, None, False),
    ],
)
def test_compare_with_default(from_, to, expected):
    diff = ValueDiff(from_=from_, to=to)
    assert diff.compare_with_default(False, True, False) is expected


def test_direction_invert():
    assert Direction.REQUEST.invert() is Direction.RESPONSE
    assert Direction.RESPONSE.invert() is Direction.REQUEST
    assert Direction.NONE.invert() is Direction.NONE


def test_get_strings_diff():
    diff = get_strings_diff(["b", "a", "c"], ["c", "d", "a"])
    assert diff == StringsDiff(added=["d"], deleted=["b"])
    assert get_strings_diff(["a"], ["a"]) is None
    assert get_strings_diff(None, None) is None


def test_diff_collections_partitions_keys():
    items1 = {"b": 1, "a": 2, "c": 3}
    items2 = {"c": 4, "a": 2, "e": 5, "d": 6}

    delta = diff_collections(items1, items2, get_value_diff)

    assert delta.added == ["d", "e"]
    assert delta.deleted == ["b"]
    assert list(delta.modified) == ["c"]
    assert delta.modified["c"] == ValueDiff(from_=3, to=4)


def test_diff_collections_skips_unchanged_entries():
    delta = diff_collections({"a": 1}, {"a": 1}, get_value_diff)
    assert delta.added == [] and delta.deleted == [] and delta.modified == {}


def test_get_map_diff_empty_is_none():
    assert get_map_diff(MapDiff, {"a": 1}, {"a": 1}, get_value_diff) is None
    assert get_map_diff(MapDiff, None, None, get_value_diff) is None


def test_map_diff_summary_counts():
    diff = get_map_diff(MapDiff, {"a": 1, "b": 2}, {"b": 3, "c": 4}, get_value_diff)
    assert diff.summary_counts() == (1, 1, 1)


def test_extensions_diff():
    diff = get_extensions_diff({"x-a": 1, "x-b": 2}, {"x-a": 2, "x-c": 3})
    assert diff.added == ["x-c"]
    assert diff.deleted == ["x-b"]
    assert diff.modified["x-a"].to == 2


def test_prune_modified_drops_emptied_entries():
    diff = get_map_diff(MapDiff, {"a": 1, "b": 2}, {"a": 2, "b": 3}, get_value_diff)
    prune_modified(diff, lambda d: None if d.to == 2 else d)
    assert list(diff.modified) == ["b"]


def test_or_none():
    assert or_none(None) is None
    assert or_none(StringsDiff()) is None
    diff = StringsDiff(added=["a"])
    assert or_none(diff) is diff


def test_empty_delta_serializes_to_empty_mapping():
    assert StringsDiff().to_dict() == {}
    assert StringsDiff().empty()


def test_deref():
    schema = Schema(type="string")
    assert deref(schema, "schema") is schema

    with pytest.raises(MalformedReferenceError) as exc:
        deref(Schema(ref="#/components/schemas/Missing"), "schema")
    assert exc.value.ref == "#/components/schemas/Missing"
    assert "Missing" in str(exc.value)

    with pytest.raises(MalformedReferenceError, match="nil"):
        deref(None, "schema")
