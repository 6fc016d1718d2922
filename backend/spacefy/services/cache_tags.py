"""Cache tag derivation — pure functions over a request shape.

A cached read and a later mutation agree on which entries belong together
because both run ``tags_for`` on the same ``RequestShape``: the route entity
(the resource segment the router is mounted at) plus the path parameters.

    GET /api/v1/branches/{branch_id}    -> route:branches, prefix:branches,
                                           prefix:branch, param:branch_id:<id>,
                                           prefix:branch_id

No I/O happens here; ``cache_service`` does the reads and deletes.
"""

from dataclasses import dataclass, field
from typing import Mapping

TAG_SET_PREFIX = "cacheTag:"
UNKNOWN_ENTITY = "unknown"


def sanitize_tag(value) -> str:
    return str(value).strip().lower()


def singularize(value: str) -> str:
    """Naive English singular: ``businesses`` -> ``business``, ``categories`` -> ``category``."""
    if not value or len(value) < 2:
        return value
    if value.endswith("ies"):
        return value[:-3] + "y"
    if value.endswith("ses"):
        return value[:-2]
    if value.endswith("s"):
        return value[:-1]
    return value


def mount_prefix(route_path: str, api_prefix: str = "") -> str:
    """The segment a router is mounted at, given a full route path template.

    ``/api/v1/branches/business/{business_id}`` -> ``/branches``. Routers are
    mounted one segment deep under *api_prefix*.
    """
    path = route_path
    if api_prefix and path.startswith(api_prefix):
        path = path[len(api_prefix):]
    segments = [s for s in path.split("/") if s]
    if not segments or segments[0].startswith("{"):
        return ""
    return "/" + segments[0]


def route_entity(prefix: str) -> str:
    """Last segment of a mount prefix, or ``unknown`` when there is none."""
    parts = [p for p in prefix.split("/") if p]
    return sanitize_tag(parts[-1]) if parts else UNKNOWN_ENTITY


@dataclass(frozen=True)
class RequestShape:
    """The part of a request that cache tags depend on."""

    route_entity: str
    params: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_scope(cls, scope: dict, api_prefix: str = "") -> "RequestShape":
        """Build the shape from an ASGI scope after routing has matched.

        Falls back to the raw URL path when no route was matched.
        """
        route = scope.get("route")
        template = getattr(route, "path", None) or scope.get("path", "")
        params = {
            str(k): str(v)
            for k, v in (scope.get("path_params") or {}).items()
            if v is not None and str(v) != ""
        }
        return cls(route_entity(mount_prefix(template, api_prefix)), params)


def tags_for(shape: RequestShape) -> set[str]:
    """All tags a cache entry for *shape* is indexed under."""
    entity = sanitize_tag(shape.route_entity) or UNKNOWN_ENTITY
    tags = {
        f"route:{entity}",
        f"prefix:{entity}",
        f"prefix:{singularize(entity)}",
    }
    for key, value in shape.params.items():
        if value is None or value == "":
            continue
        tags.add(f"param:{sanitize_tag(key)}:{sanitize_tag(value)}")
        tags.add(f"prefix:{sanitize_tag(key)}")
    return tags


def tag_set_key(tag: str) -> str:
    return f"{TAG_SET_PREFIX}{tag}"


def fallback_patterns(shape: RequestShape) -> list[str]:
    """Glob patterns swept on invalidation for keys that were never tag-indexed.

    Parameter patterns use the raw key and value, matching how cache keys
    embed them (``devices:branch_id=<id>``).
    """
    entity = sanitize_tag(shape.route_entity) or UNKNOWN_ENTITY
    patterns = [f"{entity}:*", f"{singularize(entity)}:*"]
    for key, value in shape.params.items():
        if value is None or value == "":
            continue
        patterns.append(f"*{key}={value}*")
        patterns.append(f"*{value}*")
    # dedupe, keep order
    return list(dict.fromkeys(patterns))
