"""Route table and navigation guard driven by the session context."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .session import SessionContext

logger = logging.getLogger(__name__)

LOGIN = "login"
HOME = "home"


@dataclass(frozen=True)
class Route:
    name: str
    path: str
    requires_auth: bool = False
    guest_only: bool = False


DEFAULT_ROUTES: tuple[Route, ...] = (
    Route("home", "/", requires_auth=True),
    Route("analytics", "/analytics", requires_auth=True),
    Route("projects", "/projects", requires_auth=True),
    Route("customers", "/customers", requires_auth=True),
    Route("settings", "/settings", requires_auth=True),
    Route("login", "/login", guest_only=True),
    Route("auth-callback", "/auth-callback"),
)


class RouteGuard:
    """Decides whether navigation to a route may proceed."""

    def __init__(self, session: SessionContext, *, login_route: str = LOGIN, home_route: str = HOME) -> None:
        self.session = session
        self.login_route = login_route
        self.home_route = home_route

    async def before_each(self, route: Route) -> str | None:
        """Return the name of the route to divert to, or ``None`` to proceed."""

        if route.requires_auth and not self.session.is_authenticated:
            if self.session.token:
                await self.session.fetch_user()
            if not self.session.is_authenticated:
                return self.login_route

        if route.guest_only and self.session.is_authenticated:
            return self.home_route
        return None


@dataclass
class Navigation:
    requested: str
    route: Route
    diverted: bool


@dataclass
class Router:
    """Resolves navigation requests through the guard before rendering."""

    guard: RouteGuard
    routes: Iterable[Route] = DEFAULT_ROUTES
    render: Callable[[Route], None] | None = None
    history: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_name = {route.name: route for route in self.routes}

    def resolve(self, name: str) -> Route:
        try:
            return self._by_name[name]
        except KeyError:
            raise LookupError(f"Unknown route: {name}") from None

    async def navigate(self, name: str) -> Navigation:
        target = self.resolve(name)
        seen = {target.name}
        while True:
            divert_to = await self.guard.before_each(target)
            if divert_to is None:
                break
            if divert_to in seen:
                raise RuntimeError(f"Navigation loop while resolving {name}")
            logger.debug("Diverting navigation from %s to %s", target.name, divert_to)
            seen.add(divert_to)
            target = self.resolve(divert_to)

        self.history.append(target.name)
        if self.render is not None:
            self.render(target)
        return Navigation(requested=name, route=target, diverted=target.name != name)
