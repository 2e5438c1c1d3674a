"""
Route requirement declarations.

Handlers declare what they need right next to their definition:

    @router.post("/assign-role", status_code=204)
    @requires_roles(RoleName.ADMIN)
    async def assign_role(...): ...

    @router.put("/{article_id}")
    @requires_permissions("edit:Article")
    async def update_article(...): ...

The decorators only record a `RouteRequirement` on the function and
return it unchanged (FastAPI still sees the original signature).
`build_route_requirements` runs once when the app is created and turns
those declarations into a plain ``{endpoint: RouteRequirement}``
mapping; the request-time guard chain consults that mapping and never
inspects handler attributes again.

The map is keyed by the endpoint callable, which Starlette places in
``scope["endpoint"]`` for the matched route no matter how routers were
nested or prefixed.  Every API endpoint gets an entry (undecorated ones
map to an empty requirement), so an endpoint missing from the map is
an error the guard chain refuses.
"""

import enum
import logging
from collections.abc import Iterable, Iterator
from typing import Any, Callable

from fastapi.routing import APIRoute
from starlette.routing import BaseRoute

from app.rbac.guards import RouteRequirement

logger = logging.getLogger("rbac")

_REQUIREMENT_ATTR = "__route_requirement__"


def _as_str(value: Any) -> str:
    return value.value if isinstance(value, enum.Enum) else str(value)


def _declare(func: Callable, *, roles: Iterable[Any] = (), permissions: Iterable[Any] = ()) -> Callable:
    current: RouteRequirement = getattr(func, _REQUIREMENT_ATTR, RouteRequirement())
    setattr(
        func,
        _REQUIREMENT_ATTR,
        RouteRequirement(
            roles=current.roles | {_as_str(r) for r in roles},
            permissions=current.permissions | {_as_str(p) for p in permissions},
        ),
    )
    return func


def requires_roles(*roles: Any) -> Callable[[Callable], Callable]:
    """Route passes if the token holds at least one of `roles`."""

    def decorator(func: Callable) -> Callable:
        return _declare(func, roles=roles)

    return decorator


def requires_permissions(*permissions: str) -> Callable[[Callable], Callable]:
    """Route passes if the token holds at least one of `permissions`."""

    def decorator(func: Callable) -> Callable:
        return _declare(func, permissions=permissions)

    return decorator


def iter_api_routes(routes: Iterable[BaseRoute]) -> Iterator[APIRoute]:
    """Yield every APIRoute, descending into mounts and included routers."""
    for route in routes:
        if isinstance(route, APIRoute):
            yield route
            continue
        nested = getattr(route, "routes", None)
        if nested is None:
            nested = getattr(getattr(route, "router", None), "routes", None)
        if nested:
            yield from iter_api_routes(nested)


def build_route_requirements(routes: Iterable[BaseRoute]) -> dict[Callable, RouteRequirement]:
    requirements: dict[Callable, RouteRequirement] = {}
    for route in iter_api_routes(routes):
        requirements[route.endpoint] = getattr(route.endpoint, _REQUIREMENT_ATTR, RouteRequirement())
    guarded = sum(1 for r in requirements.values() if not r.is_empty)
    logger.debug("Built route requirements for %d endpoints (%d guarded)", len(requirements), guarded)
    return requirements


def check_route_requirements(
    routes: Iterable[BaseRoute],
    requirements: dict[Callable, RouteRequirement],
) -> None:
    """Raise if a declared requirement did not make it into `requirements`."""
    missing = [
        f"{','.join(sorted(route.methods or ()))} {route.path}"
        for route in iter_api_routes(routes)
        if hasattr(route.endpoint, _REQUIREMENT_ATTR)
        and requirements.get(route.endpoint) != getattr(route.endpoint, _REQUIREMENT_ATTR)
    ]
    if missing:
        raise RuntimeError(f"Routes missing from the guard requirement map: {', '.join(missing)}")
