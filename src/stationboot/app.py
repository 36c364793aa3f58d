from __future__ import annotations

import asyncio
import logging

import arcade

from .core.navigation import LOADING, MAIN_MENU, SceneRouter
from .core.scenes.manager import SceneManager
from .scenes.loading import LoadingScene
from .scenes.main_menu import MainMenuScene
from .server.backend import BackendService
from .settings import Settings

logger = logging.getLogger(__name__)


class GameApp(arcade.Window):
    """
    The main game window and application lifecycle manager.

    Responsibilities:
    - Configure the Arcade window from Settings
    - Own the SceneManager, the SceneRouter and the asyncio loop the boot flow runs on
    - Pump that loop once per frame so waits never block rendering or input
    """

    def __init__(self, settings: Settings, backend: BackendService) -> None:
        self.settings = settings
        self.backend = backend

        super().__init__(
            width=settings.video.width,
            height=settings.video.height,
            title="Station",
            fullscreen=settings.video.fullscreen,
            resizable=True,
            vsync=settings.video.vsync,
            center_window=True,
        )
        self.background_color = arcade.color.BLACK

        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

        self.scene_manager = SceneManager(self)
        self.router = SceneRouter(show=self.scene_manager.replace, terminate=self._terminate)
        self.router.register(MAIN_MENU, lambda: MainMenuScene(self))
        self.router.register(LOADING, lambda: LoadingScene(self, self.backend, self.router, settings.loading))
        self.router.go(LOADING)

        logger.info(
            "GameApp initialized: %dx%d fullscreen=%s vsync=%s",
            settings.video.width,
            settings.video.height,
            settings.video.fullscreen,
            settings.video.vsync,
        )

    def pump(self) -> None:
        """Run every asyncio callback that is ready, then return to the window loop."""
        self.loop.call_soon(self.loop.stop)
        self.loop.run_forever()

    # Arcade lifecycle
    def on_draw(self):  # noqa: N802 (arcade API)
        self.clear()
        self.scene_manager.draw()

    def on_update(self, delta_time: float):  # noqa: N802 (arcade API)
        self.pump()
        self.scene_manager.update(delta_time)

    def on_key_press(self, key: int, modifiers: int):  # noqa: N802 (arcade API)
        self.scene_manager.key_press(key, modifiers)

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):  # noqa: N802
        self.scene_manager.mouse_press(x, y, button, modifiers)

    def _terminate(self, code: int) -> None:
        logger.critical("Terminating application (exit code %d)", code)
        self.close()

    def shutdown(self) -> None:
        self.scene_manager.clear()
        self.backend.stop()
        self.pump()
        self.loop.close()

    def run(self) -> None:
        """Start the main loop."""
        logger.info("Starting main loop")
        try:
            arcade.run()
        finally:
            self.shutdown()
