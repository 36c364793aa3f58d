from __future__ import annotations

import logging
from typing import Any, List, Optional

from .base_scene import BaseScene

logger = logging.getLogger(__name__)


class SceneManager:
    """A stack-based scene manager.

    - push(scene): push a new scene on top; calls on_enter
    - pop(): remove top scene; calls on_exit
    - replace(scene): convenience to pop then push
    - update/draw/input: only the top scene is active
    """

    def __init__(self, app: Any):
        self._stack: List[BaseScene] = []
        self.app = app

    def push(self, scene: BaseScene) -> None:
        scene.manager = self
        self._stack.append(scene)
        logger.debug("Scene pushed: %s", type(scene).__name__)
        scene.on_enter()

    def pop(self) -> Optional[BaseScene]:
        if not self._stack:
            return None
        scene = self._stack.pop()
        logger.debug("Scene popped: %s", type(scene).__name__)
        try:
            scene.on_exit()
        finally:
            scene.manager = None
        return scene

    def replace(self, scene: BaseScene) -> None:
        self.pop()
        self.push(scene)

    def clear(self) -> None:
        while self._stack:
            self.pop()

    @property
    def current(self) -> Optional[BaseScene]:
        return self._stack[-1] if self._stack else None

    def __len__(self) -> int:
        return len(self._stack)

    def update(self, delta_time: float):
        if self.current:
            self.current.update(delta_time)

    def draw(self):
        if self.current:
            self.current.draw()

    # Input delegation
    def key_press(self, key: int, modifiers: int):
        if self.current:
            self.current.on_key_press(key, modifiers)

    def mouse_press(self, x: float, y: float, button: int, modifiers: int):
        if self.current:
            self.current.on_mouse_press(x, y, button, modifiers)
