from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import arcade

from ..boot.orchestrator import LoadingOrchestrator
from ..boot.session import LogEntry
from ..core.navigation import SceneRouter
from ..core.scenes.base_scene import BaseScene
from ..server.backend import BackendService
from ..settings import LoadingSettings

logger = logging.getLogger(__name__)

LOG_LINES = 10
BUTTON_WIDTH = 220
BUTTON_HEIGHT = 48


class LoadingScene(BaseScene):
    """Loading screen: status label, progress bar, colored log panel and CONTINUE button.

    Acts as the orchestrator's ProgressView. Any key, or a click on the
    button, fires the continuation gate once loading is complete.
    """

    def __init__(
        self,
        app: arcade.Window,
        backend: Optional[BackendService],
        router: SceneRouter,
        settings: LoadingSettings,
    ) -> None:
        super().__init__(app)
        self.status = ""
        self.progress = 0
        self.lines: List[LogEntry] = []
        self.continue_visible = False
        self.alpha = 1.0
        self.orchestrator = LoadingOrchestrator(backend, self, router.go, settings)
        self._task: Optional[asyncio.Task] = None

    # ProgressView
    def set_status(self, text: str) -> None:
        self.status = text

    def set_progress(self, value: int) -> None:
        self.progress = value

    def append_log(self, entry: LogEntry) -> None:
        self.lines.append(entry)

    def show_continue(self) -> None:
        self.continue_visible = True

    def pulse(self, alpha: float) -> None:
        self.alpha = alpha

    # Lifecycle
    def on_enter(self):
        super().on_enter()
        self._task = self.app.loop.create_task(self.orchestrator.run())

    def on_exit(self):
        super().on_exit()
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task(self.app.loop):
            task.cancel()
        self.orchestrator.close()

    # Input
    def on_key_press(self, key: int, modifiers: int):
        self.orchestrator.gate.trigger("key")

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):
        left, right, bottom, top = self._button_rect()
        if self.continue_visible and left <= x <= right and bottom <= y <= top:
            self.orchestrator.gate.trigger("button")

    # Rendering
    def _button_rect(self):
        cx = self.app.width / 2
        bottom = 60
        return cx - BUTTON_WIDTH / 2, cx + BUTTON_WIDTH / 2, bottom, bottom + BUTTON_HEIGHT

    def draw(self):
        w, h = self.app.width, self.app.height
        arcade.draw_text(
            "STATION",
            w / 2,
            h - 100,
            color=arcade.color.GHOST_WHITE,
            font_size=36,
            anchor_x="center",
            anchor_y="center",
        )
        arcade.draw_text(
            self.status,
            w / 2,
            h - 170,
            color=arcade.color.LIGHT_GRAY,
            font_size=18,
            anchor_x="center",
            anchor_y="center",
        )

        left, right = w * 0.2, w * 0.8
        bottom, top = h - 230, h - 206
        if self.progress > 0:
            fill = left + (right - left) * self.progress / 100
            arcade.draw_lrbt_rectangle_filled(left, fill, bottom, top, arcade.color.CYAN)
        arcade.draw_lrbt_rectangle_outline(left, right, bottom, top, arcade.color.GRAY, 2)
        arcade.draw_text(
            f"{self.progress}%",
            w / 2,
            bottom - 20,
            color=arcade.color.GRAY,
            font_size=14,
            anchor_x="center",
            anchor_y="center",
        )

        y = bottom - 60
        for entry in self.lines[-LOG_LINES:]:
            arcade.draw_text(entry.format(), left, y, color=entry.color, font_size=12)
            y -= 20

        if self.continue_visible:
            b_left, b_right, b_bottom, b_top = self._button_rect()
            arcade.draw_lrbt_rectangle_outline(b_left, b_right, b_bottom, b_top, arcade.color.GHOST_WHITE, 2)
            arcade.draw_text(
                "CONTINUE",
                w / 2,
                (b_bottom + b_top) / 2,
                color=arcade.color.GHOST_WHITE,
                font_size=18,
                anchor_x="center",
                anchor_y="center",
            )
            arcade.draw_text(
                "Press any key to continue",
                w / 2,
                b_top + 24,
                color=(255, 255, 0, int(255 * self.alpha)),
                font_size=14,
                anchor_x="center",
                anchor_y="center",
            )
