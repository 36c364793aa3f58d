from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .manager import SceneManager

logger = logging.getLogger(__name__)


class BaseScene:
    """
    Base class for all scenes in the game.

    Lifecycle hooks:
    - on_enter(): Called when scene is pushed onto the manager
    - on_exit(): Called when scene is popped from the manager
    - update(delta_time)
    - draw()

    Input hooks:
    - on_key_press(key, modifiers)
    - on_mouse_press(x, y, button, modifiers)
    """

    def __init__(self, app: Any) -> None:
        self.app = app
        self.manager: Optional["SceneManager"] = None  # set by SceneManager

    # Lifecycle
    def on_enter(self):
        logger.debug("%s.on_enter", type(self).__name__)

    def on_exit(self):
        logger.debug("%s.on_exit", type(self).__name__)

    def update(self, delta_time: float):
        pass

    def draw(self):
        pass

    # Input handling (override as needed)
    def on_key_press(self, key: int, modifiers: int):
        pass

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):
        pass
