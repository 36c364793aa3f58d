from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..errors import RouteNotFound

logger = logging.getLogger(__name__)

MAIN_MENU = "main_menu"
LOADING = "loading"

SceneFactory = Callable[[], Any]


def _exit_application(code: int) -> None:
    raise SystemExit(code)


class SceneRouter:
    """Maps application state names to scene factories.

    The names are opaque to the boot flow. Going to an unknown state is the
    last-resort failure: the router logs it and terminates the application.
    """

    def __init__(
        self,
        show: Callable[[Any], None],
        terminate: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._show = show
        self._terminate = terminate or _exit_application
        self._routes: Dict[str, SceneFactory] = {}
        self.history: List[str] = []

    def register(self, name: str, factory: SceneFactory) -> None:
        self._routes[name] = factory

    def has(self, name: str) -> bool:
        return name in self._routes

    def resolve(self, name: str) -> SceneFactory:
        try:
            return self._routes[name]
        except KeyError:
            raise RouteNotFound(f"No scene registered for state {name!r}") from None

    def go(self, name: str) -> None:
        try:
            factory = self.resolve(name)
        except RouteNotFound as e:
            logger.critical("%s; terminating application", e)
            self._terminate(1)
            return
        logger.info("Navigating to %s", name)
        self.history.append(name)
        self._show(factory())
