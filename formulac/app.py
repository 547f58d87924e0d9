"""Window, main loop and the switch between menu and race."""

from __future__ import annotations

import argparse
import time
from typing import Callable, Optional

import pygame

from formulac.common import LOGO_IMAGE_PATH, GameState, Screen
from formulac.game import Game
from formulac.menu import Menu

TARGET_FPS = 60
WINDOW_TITLE = "Formula C"


class App:
    """The running game: a menu and a race sharing one state."""

    def __init__(self, screen_width: int = 1280, screen_height: int = 720,
                 surface: Optional[pygame.Surface] = None,
                 state: Optional[GameState] = None,
                 clock: Optional[Callable[[], float]] = None) -> None:
        self.state = state if state is not None else GameState()
        self.clock = clock if clock is not None else time.monotonic
        self.surface = surface if surface is not None else pygame.Surface(
            (screen_width, screen_height))
        self.game = Game(self.state, screen_width, screen_height, clock=self.clock)
        self.menu = Menu(self.state, screen_width, screen_height)
        self.menu.setup(self.game.load)
        self.game.setup()

    def step(self, keys, mouse_pos, clicked: bool, now: float) -> Screen:
        """Update and draw one frame; return the screen that is now active."""
        if self.state.screen == Screen.MENU:
            self.menu.update(mouse_pos, clicked)
            self.menu.draw(self.surface)
        else:
            self.game.update(keys, now)
            self.game.draw(self.surface)
        return self.state.screen

    def run(self) -> None:
        """Run until the window is closed or Escape is pressed."""
        ticker = pygame.time.Clock()
        try:
            while True:
                clicked = False
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        return
                    if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        return
                    if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                        clicked = True
                self.step(pygame.key.get_pressed(), pygame.mouse.get_pos(),
                          clicked, self.clock())
                pygame.display.flip()
                ticker.tick(TARGET_FPS)
        finally:
            self.game.cleanup()
            self.menu.cleanup()


def _set_icon() -> None:
    try:
        icon = pygame.image.load(LOGO_IMAGE_PATH)
    except (pygame.error, OSError):
        return
    pygame.display.set_icon(pygame.transform.scale(icon, (32, 32)))


def main(argv=None) -> int:
    """Open the game window and play."""
    parser = argparse.ArgumentParser(prog="formulac", description="Top-down racing game.")
    parser.add_argument("--windowed", action="store_true",
                        help="run in a window instead of full screen")
    parser.add_argument("--width", type=int, default=1280, help="window width")
    parser.add_argument("--height", type=int, default=720, help="window height")
    args = parser.parse_args(argv)

    pygame.init()
    try:
        pygame.mixer.init()
    except pygame.error:
        pass
    try:
        _set_icon()
        pygame.display.set_caption(WINDOW_TITLE)
        if args.windowed:
            display = pygame.display.set_mode((args.width, args.height))
        else:
            display = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        width, height = display.get_size()
        App(width, height, surface=display).run()
    finally:
        pygame.quit()
    return 0