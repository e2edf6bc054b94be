import copy
from typing import Any, Iterator, Optional

from oasdelta.config import DiffConfig
from oasdelta.diff.state import DiffState
from oasdelta.spec import OpenAPI, from_dict

PETSTORE: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "servers": [{"url": "https://petstore.example.com/v1"}],
    "tags": [{"name": "pets", "description": "Everything about pets"}],
    "security": [{"api_key": []}],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "tags": ["pets"],
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "required": False,
                        "schema": {"type": "integer", "maximum": 100},
                    }
                ],
                "responses": {
                    "200": {
                        "description": "A list of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                }
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/Pet"}
                        }
                    },
                },
                "responses": {"201": {"description": "Created"}},
            },
        },
        "/pets/{petId}": {
            "parameters": [
                {
                    "name": "petId",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "string"},
                }
            ],
            "get": {
                "operationId": "showPetById",
                "responses": {
                    "200": {
                        "description": "Expected response to a valid request",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    },
                    "default": {"$ref": "#/components/responses/Error"},
                },
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string"},
                    "status": {"type": "string", "enum": ["available", "sold"]},
                    "owner": {"$ref": "#/components/schemas/Person"},
                },
            },
            "Person": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "pets": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/Pet"},
                    },
                },
            },
        },
        "responses": {
            "Error": {
                "description": "unexpected error",
                "content": {"application/json": {"schema": {"type": "object"}}},
            }
        },
        "securitySchemes": {
            "api_key": {"type": "apiKey", "name": "X-API-Key", "in": "header"}
        },
    },
}


def mk_raw(raw: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Deep copy of a raw document (PETSTORE by default) for local edits."""
    return copy.deepcopy(raw if raw is not None else PETSTORE)


def mk_spec(raw: Optional[dict[str, Any]] = None) -> OpenAPI:
    return from_dict(mk_raw(raw))


def mk_config(**kwargs: Any) -> DiffConfig:
    return DiffConfig(_env_file=None, **kwargs)


def mk_state(**kwargs: Any) -> DiffState:
    return DiffState(config=mk_config(**kwargs))


def leaves(data: Any, prefix: tuple = ()) -> Iterator[tuple]:
    """
    Flattens a serialized delta into leaf paths; list items become part of
    the path so that removing one item removes one leaf.
    """
    if isinstance(data, dict):
        for k, v in data.items():
            yield from leaves(v, prefix + (k,))
    elif isinstance(data, list):
        for v in data:
            yield from leaves(v, prefix)
    else:
        yield prefix + (repr(data),)
