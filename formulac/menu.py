"""Main menu: game mode, track and debug selection, and the play button."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional, Sequence

import pygame

from formulac.common import (
    BACKGROUND_PATH,
    BLACK,
    CLICK_BUTTON_SOUND_PATH,
    FONT_PATHS,
    GAME_MODES,
    GOLD,
    MAPS,
    MENU_MUSIC_PATH,
    MENU_MUSIC_VOLUME,
    RED,
    CurrentMap,
    GameState,
    MapInfo,
    Mode,
)

BUTTON_COLOR = (215, 215, 215, 255)
SHADOW_COLOR = (0, 0, 0, 51)
SHADOW_OFFSET = 6
HOVER_SCALE = 1.05
ROUNDNESS = 0.3


@lru_cache(maxsize=None)
def _font(index: int, size: int) -> pygame.font.Font:
    if not pygame.font.get_init():
        pygame.font.init()
    try:
        return pygame.font.Font(FONT_PATHS[index], size)
    except (OSError, pygame.error):
        return pygame.font.Font(None, size)


@dataclass
class Button:
    """A clickable menu entry."""

    text: str
    pos: tuple
    action: Callable[[], None]
    hovered: bool = False
    selected: bool = False

    def contains(self, point, width: int, height: int) -> bool:
        """Whether ``point`` lies inside the button of the given size."""
        x, y = self.pos
        return x <= point[0] < x + width and y <= point[1] < y + height


class Menu:
    """The screen shown before a race, where the player picks how to play."""

    def __init__(self, state: GameState, screen_width: int, screen_height: int,
                 maps: Sequence[MapInfo] = MAPS, modes: Sequence[str] = GAME_MODES) -> None:
        self.state = state
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.maps = tuple(maps)
        self.modes = tuple(modes)

        self.width = screen_width // 5
        self.height = screen_height // 10
        self.padding = screen_height // 9
        self.margin = screen_width // 60
        self.font_size = screen_width // 42

        self.mode_buttons: list = []
        self.map_buttons: list = []
        self.debug_button: Optional[Button] = None
        self.play_button: Optional[Button] = None

        self.background: Optional[pygame.Surface] = None
        self.click_sound = None
        self._music_loaded = False

    # -- set-up -----------------------------------------------------------

    def setup(self, play: Callable[[], None]) -> None:
        """Lay out every button; ``play`` runs when the play button is pressed."""
        self._setup_mode_buttons()
        self._setup_map_buttons()
        self._setup_main_buttons(play)
        self._load_assets()

    def _column_top(self, count: int) -> int:
        step = self.padding + self.height
        return (self.screen_height - step * (count - 1) + self.padding) // 2

    def _setup_mode_buttons(self) -> None:
        step = self.padding + self.height
        top = self._column_top(len(self.modes))
        x = (self.screen_width - self.width) / 2.0
        self.mode_buttons = [
            Button(
                text=text,
                pos=(x, top + row * step),
                action=lambda mode=Mode(row): self._set_mode(mode),
                selected=row == self.state.mode,
            )
            for row, text in enumerate(self.modes)
        ]

    def _setup_map_buttons(self) -> None:
        step = self.padding + self.height
        top = self._column_top(len(self.maps))
        x = self.screen_width / 4.0 - self.width / 2.0
        self.map_buttons = [
            Button(
                text=map_info.name,
                pos=(x, top + row * step),
                action=lambda choice=CurrentMap(row): self._set_map(choice),
                selected=row == self.state.map,
            )
            for row, map_info in enumerate(self.maps)
        ]

    def _setup_main_buttons(self, play: Callable[[], None]) -> None:
        x = self.screen_width - self.width - self.margin
        self.play_button = Button(
            text="Play",
            pos=(x, self.screen_height - self.height - self.margin),
            action=play,
        )
        self.debug_button = Button(
            text="Debug",
            pos=(x, self.screen_height - 2 * self.height - 2 * self.margin),
            action=self._toggle_debug,
            selected=self.state.debug,
        )

    def _load_assets(self) -> None:
        try:
            image = pygame.image.load(BACKGROUND_PATH)
            self.background = pygame.transform.scale(
                image, (self.screen_width, self.screen_height))
        except (pygame.error, OSError):
            self.background = None

        if not pygame.mixer.get_init():
            return
        try:
            self.click_sound = pygame.mixer.Sound(CLICK_BUTTON_SOUND_PATH)
        except (pygame.error, OSError):
            self.click_sound = None
        try:
            pygame.mixer.music.load(MENU_MUSIC_PATH)
            pygame.mixer.music.play(-1)
            self._music_loaded = True
        except (pygame.error, OSError):
            self._music_loaded = False

    # -- actions ----------------------------------------------------------

    def _set_mode(self, mode: Mode) -> None:
        self.state.mode = mode

    def _set_map(self, choice: CurrentMap) -> None:
        self.state.map = choice

    def _toggle_debug(self) -> None:
        self.state.debug = not self.state.debug
        if self.debug_button is not None:
            self.debug_button.selected = self.state.debug

    # -- update -----------------------------------------------------------

    def _press(self, button: Button, mouse_pos, clicked: bool) -> bool:
        button.hovered = button.contains(mouse_pos, self.width, self.height)
        if button.hovered and clicked:
            if self.click_sound is not None:
                self.click_sound.play()
            button.action()
            return True
        return False

    def _press_group(self, buttons: list, mouse_pos, clicked: bool) -> Optional[Button]:
        for button in buttons:
            if self._press(button, mouse_pos, clicked):
                for other in buttons:
                    other.selected = False
                button.selected = True
                return button
        return None

    def update(self, mouse_pos, clicked: bool) -> list:
        """Track hovering and clicks; return the buttons pressed this frame."""
        pressed = [
            button
            for button in (
                self._press_group(self.mode_buttons, mouse_pos, clicked),
                self._press_group(self.map_buttons, mouse_pos, clicked),
            )
            if button is not None
        ]
        for button in (self.debug_button, self.play_button):
            if button is not None and self._press(button, mouse_pos, clicked):
                pressed.append(button)

        if self._music_loaded:
            pygame.mixer.music.set_volume(MENU_MUSIC_VOLUME)
        return pressed

    # -- drawing ----------------------------------------------------------

    def _all_buttons(self) -> list:
        extra = [b for b in (self.debug_button, self.play_button) if b is not None]
        return [*self.mode_buttons, *self.map_buttons, *extra]

    def draw(self, surface) -> None:
        """Draw the background and every button."""
        if self.background is not None:
            surface.blit(self.background, (0, 0))
        for button in self._all_buttons():
            self._draw_button(surface, button)

    def _draw_button(self, surface, button: Button) -> None:
        width, height = self.width, self.height
        x, y = button.pos
        radius = int(ROUNDNESS * min(width, height) / 2)

        color = GOLD if button.hovered else BUTTON_COLOR
        if button.selected:
            color = RED

        shadow = pygame.Surface((width, height), pygame.SRCALPHA)
        pygame.draw.rect(shadow, SHADOW_COLOR, shadow.get_rect(), border_radius=radius)
        surface.blit(shadow, (round(x) + SHADOW_OFFSET, round(y) + SHADOW_OFFSET))

        scale = HOVER_SCALE if button.hovered else 1.0
        scaled = pygame.Rect(
            round(x - width * (scale - 1) / 2),
            round(y - height * (scale - 1) / 2),
            round(width * scale),
            round(height * scale),
        )
        pygame.draw.rect(surface, color, scaled, border_radius=radius)

        font = _font(1, self.font_size)
        text_x = x + (width - font.size(button.text)[0]) / 2
        text_y = y + (height - self.font_size) / 2
        surface.blit(font.render(button.text, True, BLACK), (round(text_x), round(text_y)))

    # -- clean-up ---------------------------------------------------------

    def cleanup(self) -> None:
        """Stop the menu music and release its assets."""
        if self._music_loaded:
            pygame.mixer.music.stop()
            self._music_loaded = False
        self.click_sound = None
        self.background = None