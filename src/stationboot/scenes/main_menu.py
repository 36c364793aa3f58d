from __future__ import annotations

import logging

import arcade

from ..core.scenes.base_scene import BaseScene

logger = logging.getLogger(__name__)


class MainMenuScene(BaseScene):
    """Placeholder main menu scene.

    Esc quits; everything else is left to the game proper.
    """

    def draw(self):
        arcade.draw_text(
            "STATION",
            self.app.width / 2,
            self.app.height / 2 + 80,
            color=arcade.color.GHOST_WHITE,
            font_size=36,
            anchor_x="center",
            anchor_y="center",
        )
        arcade.draw_text(
            "Main Menu - Esc to Quit",
            self.app.width / 2,
            self.app.height / 2,
            color=arcade.color.GRAY,
            font_size=18,
            anchor_x="center",
            anchor_y="center",
        )

    def on_key_press(self, key: int, modifiers: int):
        if key == arcade.key.ESCAPE:
            logger.info("Exit selected from MainMenu")
            self.app.close()
