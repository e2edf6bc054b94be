from .loader import RefResolver, from_dict, load, loads
from .models import (
    Components,
    Encoding,
    Header,
    Info,
    MediaType,
    OpenAPI,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
    Server,
    Tag,
)

__all__ = [
    "Components",
    "Encoding",
    "Header",
    "Info",
    "MediaType",
    "OpenAPI",
    "Operation",
    "Parameter",
    "PathItem",
    "RefResolver",
    "RequestBody",
    "Response",
    "Schema",
    "SecurityScheme",
    "Server",
    "Tag",
    "from_dict",
    "load",
    "loads",
]
