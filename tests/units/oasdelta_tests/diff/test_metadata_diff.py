from oasdelta.diff.metadata import (
    get_info_diff,
    get_servers_diff,
    get_tags_diff,
    prune_info,
    prune_servers,
    prune_tags,
)
from oasdelta.spec import Info, Server, Tag

from tests.units.oasdelta_tests.helpers import mk_state


def test_tags_diff():
    diff = get_tags_diff(
        mk_state(),
        [Tag(name="pets", description="a"), Tag(name="store")],
        [Tag(name="pets", description="b"), Tag(name="users")],
    )
    assert diff.added == ["users"]
    assert diff.deleted == ["store"]
    assert diff.modified["pets"].description.to == "b"
    assert prune_tags(diff) is None


def test_tags_exclude_description():
    diff = get_tags_diff(
        mk_state(exclude_description=True),
        [Tag(name="pets", description="a")],
        [Tag(name="pets", description="b")],
    )
    assert diff is None


def test_servers_diff():
    diff = get_servers_diff(
        mk_state(),
        [
            Server(url="https://a.example.com", variables={"port": {"default": "80"}}),
            Server(url="https://old.example.com"),
        ],
        [
            Server(url="https://a.example.com", variables={"port": {"default": "8080"}}),
            Server(url="https://new.example.com"),
        ],
    )
    assert diff.added == ["https://new.example.com"]
    assert diff.deleted == ["https://old.example.com"]
    port = diff.modified["https://a.example.com"].variables.modified["port"]
    assert port.default.from_ == "80"
    assert port.default.to == "8080"

    pruned = prune_servers(diff)
    assert pruned.added == []
    assert pruned.deleted == ["https://old.example.com"]


def test_servers_prune_description_only():
    diff = get_servers_diff(
        mk_state(),
        [Server(url="https://a.example.com", description="a")],
        [Server(url="https://a.example.com", description="b")],
    )
    assert diff is not None
    assert prune_servers(diff) is None


def _server_with_variable(**variable):
    return [Server(url="https://{env}.example.com", variables={"env": variable})]


def test_server_variable_fields():
    diff = get_servers_diff(
        mk_state(),
        _server_with_variable(default="prod", enum=["prod", "dev"], description="old"),
        _server_with_variable(default="dev", enum=["dev"], description="new"),
    )
    env = diff.modified["https://{env}.example.com"].variables.modified["env"]
    assert env.default.to == "dev"
    assert env.enum.deleted == ["prod"]
    assert env.description.to == "new"

    pruned = prune_servers(diff)
    env = pruned.modified["https://{env}.example.com"].variables.modified["env"]
    assert env.description is None
    assert env.default.to == "dev"


def test_server_variable_description_only():
    servers1 = _server_with_variable(default="prod", description="old")
    servers2 = _server_with_variable(default="prod", description="new")

    assert get_servers_diff(mk_state(exclude_description=True), servers1, servers2) is None

    diff = get_servers_diff(mk_state(), servers1, servers2)
    assert diff is not None
    assert prune_servers(diff) is None


def test_info_diff():
    diff = get_info_diff(
        mk_state(),
        Info(title="Petstore", version="1.0.0"),
        Info(title="Petstore", version="1.1.0", contact={"name": "team"}),
    )
    assert diff.version.to == "1.1.0"
    assert diff.contact.to == {"name": "team"}
    assert diff.title is None
    assert prune_info(diff) is None


def test_info_extensions():
    diff = get_info_diff(
        mk_state(),
        Info.model_validate({"title": "a", "x-audience": "internal"}),
        Info.model_validate({"title": "a", "x-audience": "public"}),
    )
    assert diff.extensions.modified["x-audience"].to == "public"
