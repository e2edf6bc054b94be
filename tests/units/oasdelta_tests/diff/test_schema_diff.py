import pytest

from oasdelta.diff.base import Direction
from oasdelta.diff.schema import (
    get_enum_diff,
    get_schema_diff,
    get_schema_list_diff,
    prune_schema,
)
from oasdelta.errors import MalformedReferenceError
from oasdelta.spec import Schema, loads

from tests.units.oasdelta_tests.helpers import mk_state


def _self_cycle() -> Schema:
    node = Schema(type="object", properties={"id": Schema(type="integer")})
    node.properties["self"] = node
    return node


def _mutual_cycle(extra_b_property: bool = False) -> Schema:
    a = Schema(type="object")
    b = Schema(type="object")
    a.properties["b"] = b
    b.properties["a"] = a
    if extra_b_property:
        b.properties["name"] = Schema(type="string")
    return a


def test_nil_schemas():
    state = mk_state()
    assert get_schema_diff(state, None, None) is None
    assert get_schema_diff(state, None, Schema()).schema_added
    assert get_schema_diff(state, Schema(), None).schema_deleted


def test_identical_schema_is_empty():
    state = mk_state()
    schema = Schema(
        type="object",
        required=["id"],
        properties={"id": Schema(type="integer"), "tags": Schema(type="array")},
    )
    assert get_schema_diff(state, schema, schema) is None
    assert get_schema_diff(state, schema, schema.model_copy(deep=True)) is None


def test_scalar_constraints():
    state = mk_state()
    diff = get_schema_diff(
        state,
        Schema(type="string", maxLength=10, pattern="^a"),
        Schema(type="integer", maxLength=20, pattern="^a"),
    )
    assert diff.type.from_ == "string" and diff.type.to == "integer"
    assert diff.max_length.to == 20
    assert diff.pattern is None


def test_properties_and_required():
    state = mk_state()
    diff = get_schema_diff(
        state,
        Schema(
            required=["id"],
            properties={"id": Schema(type="integer"), "old": Schema(type="string")},
        ),
        Schema(
            required=["id", "new"],
            properties={"id": Schema(type="string"), "new": Schema(type="string")},
        ),
    )
    assert diff.required.added == ["new"]
    assert diff.properties.added == ["new"]
    assert diff.properties.deleted == ["old"]
    assert diff.properties.modified["id"].type.to == "string"


def test_enum_diff_handles_unhashable_values():
    diff = get_enum_diff([{"a": 1}, [1]], [[1], {"b": 2}])
    assert diff.added == [{"b": 2}]
    assert diff.deleted == [{"a": 1}]
    assert get_enum_diff(None, []) is None


def test_enum_diff_tells_booleans_from_numbers():
    diff = get_enum_diff([1, 0], [True, 0])
    assert diff.added == [True]
    assert diff.deleted == [1]


def test_additional_properties():
    state = mk_state()
    diff = get_schema_diff(
        state,
        Schema(additionalProperties=False),
        Schema(additionalProperties=Schema(type="string")),
    )
    assert diff.additional_properties_allowed.from_ is False
    assert diff.additional_properties_allowed.to is True
    assert diff.additional_properties.schema_added


def test_composition_lists_are_positional():
    state = mk_state()
    diff = get_schema_list_diff(
        state,
        [Schema(type="string"), Schema(type="integer")],
        [Schema(type="integer"), Schema(type="integer"), Schema(type="boolean")],
    )
    assert diff.added == [2]
    assert diff.deleted == []
    assert list(diff.modified) == [0]


def test_composition_deleted_members():
    state = mk_state()
    diff = get_schema_diff(
        state,
        Schema(oneOf=[Schema(type="string"), Schema(type="integer")]),
        Schema(oneOf=[Schema(type="string")]),
    )
    assert diff.one_of.deleted == [1]


def test_description_and_example_options():
    schema1 = Schema(description="old", example=1)
    schema2 = Schema(description="new", example=2)

    diff = get_schema_diff(mk_state(), schema1, schema2)
    assert diff.description is not None
    assert diff.example is None

    diff = get_schema_diff(
        mk_state(exclude_description=True, include_examples=True), schema1, schema2
    )
    assert diff.description is None
    assert diff.example.to == 2


def test_self_cycle_terminates():
    state = mk_state()
    assert get_schema_diff(state, _self_cycle(), _self_cycle()) is None
    assert len(state.schema_cache) == 2


def test_mutual_cycle_terminates():
    state = mk_state()
    assert get_schema_diff(state, _mutual_cycle(), _mutual_cycle()) is None
    assert len(state.schema_cache) == 2


def test_mutual_cycle_reports_inner_change():
    state = mk_state()
    diff = get_schema_diff(state, _mutual_cycle(), _mutual_cycle(extra_b_property=True))
    assert diff.properties.modified["b"].properties.added == ["name"]


def test_same_pair_is_compared_once():
    state = mk_state()
    schema1 = Schema(type="string")
    schema2 = Schema(type="integer")

    first = get_schema_diff(state, schema1, schema2)
    second = get_schema_diff(state, schema1, schema2)

    assert first is second
    assert state.schema_cache.hits == 1


def test_distinct_equal_nodes_are_cached_separately():
    state = mk_state()
    shared = Schema(type="string")
    copy = Schema(type="string")
    parent1 = Schema(properties={"a": shared, "b": shared})
    parent2 = Schema(properties={"a": copy, "b": Schema(type="string")})

    assert get_schema_diff(state, parent1, parent2) is None
    # parent pair plus one pair per distinct revision node
    assert len(state.schema_cache) == 3


def test_cycle_built_by_loader():
    text = """
openapi: 3.0.3
info: {title: t, version: "1"}
paths: {}
components:
  schemas:
    Node:
      type: object
      properties:
        next:
          $ref: '#/components/schemas/Node'
"""
    doc1 = loads(text)
    doc2 = loads(text)
    node1 = doc1.components.schemas["Node"]
    node2 = doc2.components.schemas["Node"]
    assert node1.properties["next"] is node1

    assert get_schema_diff(mk_state(), node1, node2) is None


def test_dangling_reference_raises():
    with pytest.raises(MalformedReferenceError):
        get_schema_diff(
            mk_state(), Schema(ref="#/components/schemas/Missing"), Schema()
        )


@pytest.mark.parametrize(
    "direction,breaking",
    [
        (Direction.REQUEST, False),
        (Direction.RESPONSE, True),
        (Direction.NONE, True),
    ],
)
def test_prune_enum_added(direction, breaking):
    diff = get_schema_diff(mk_state(), Schema(enum=["a"]), Schema(enum=["a", "b"]))
    assert (prune_schema(diff, direction) is not None) is breaking


@pytest.mark.parametrize(
    "direction,breaking",
    [
        (Direction.REQUEST, True),
        (Direction.RESPONSE, False),
    ],
)
def test_prune_required_added(direction, breaking):
    diff = get_schema_diff(
        mk_state(), Schema(required=[]), Schema(required=["name"])
    )
    assert (prune_schema(diff, direction) is not None) is breaking


@pytest.mark.parametrize(
    "schema1,schema2,direction,breaking",
    [
        (Schema(maxLength=10), Schema(maxLength=20), Direction.REQUEST, False),
        (Schema(maxLength=10), Schema(maxLength=20), Direction.RESPONSE, True),
        (Schema(maxLength=20), Schema(maxLength=10), Direction.REQUEST, True),
        (Schema(minimum=5), Schema(minimum=1), Direction.REQUEST, False),
        (Schema(minimum=5), Schema(), Direction.REQUEST, False),
        (Schema(), Schema(maximum=5), Direction.REQUEST, True),
    ],
)
def test_prune_bounds(schema1, schema2, direction, breaking):
    diff = get_schema_diff(mk_state(), schema1, schema2)
    assert (prune_schema(diff, direction) is not None) is breaking


@pytest.mark.parametrize(
    "direction,breaking",
    [
        (Direction.REQUEST, False),
        (Direction.RESPONSE, True),
    ],
)
def test_prune_nullable_enabled(direction, breaking):
    diff = get_schema_diff(mk_state(), Schema(), Schema(nullable=True))
    assert (prune_schema(diff, direction) is not None) is breaking


def test_prune_strips_annotations():
    diff = get_schema_diff(
        mk_state(),
        Schema(title="a", description="a", deprecated=False),
        Schema(title="b", description="b", deprecated=True),
    )
    assert diff is not None
    assert prune_schema(diff, Direction.RESPONSE) is None


def test_prune_any_of_added_member():
    diff = get_schema_diff(
        mk_state(),
        Schema(anyOf=[Schema(type="string")]),
        Schema(anyOf=[Schema(type="string"), Schema(type="integer")]),
    )
    assert prune_schema(diff, Direction.REQUEST) is None
    assert prune_schema(diff, Direction.RESPONSE).any_of.added == [1]


def test_prune_recurses_into_properties():
    diff = get_schema_diff(
        mk_state(),
        Schema(properties={"status": Schema(enum=["a"])}),
        Schema(properties={"status": Schema(enum=["a", "b"])}),
    )
    assert prune_schema(diff, Direction.REQUEST) is None
    pruned = prune_schema(diff, Direction.RESPONSE)
    assert pruned.properties.modified["status"].enum.added == ["b"]


def test_prune_does_not_mutate_shared_delta():
    diff = get_schema_diff(mk_state(), Schema(enum=["a"]), Schema(enum=["a", "b"]))

    assert prune_schema(diff, Direction.REQUEST) is None
    assert diff.enum.added == ["b"]
    assert prune_schema(diff, Direction.RESPONSE) is not None
