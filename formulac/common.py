"""Shared game types, configuration tables and small helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence

import pygame

Color = tuple  # (r, g, b) or (r, g, b, a)
Point = tuple  # (x, y)

# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
RED = (230, 41, 55, 255)
GREEN = (0, 228, 48, 255)
BLUE = (0, 121, 241, 255)
ORANGE = (255, 161, 0, 255)
PURPLE = (200, 122, 255, 255)
GOLD = (255, 203, 0, 255)
YELLOW = (253, 249, 0, 255)
HUD_GREY = (51, 51, 51)


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class CurrentMap(IntEnum):
    INTERLAGOS = 0
    SECRET = 1


class Mode(IntEnum):
    SINGLEPLAYER = 0
    SPLITSCREEN = 1


class Screen(IntEnum):
    MENU = 0
    GAME = 1


class CameraView(IntEnum):
    FIRST_PERSON = 0
    THIRD_PERSON = 1


class Status(IntEnum):
    COUNTDOWN = 0
    STARTED = 1
    ENDED = 2


@dataclass(frozen=True)
class Checkpoint:
    """A point on the track a car must pass, with the heading used on respawn."""

    pos: Point
    angle: float


@dataclass(frozen=True)
class MapInfo:
    """Static description of a race track."""

    name: str
    background_path: str
    mask_path: str
    minimap_path: str
    start_positions: tuple
    start_angle: float
    max_laps: int
    checkpoints: tuple

    @property
    def checkpoint_count(self) -> int:
        return len(self.checkpoints)


@dataclass(frozen=True)
class TrackArea:
    """A surface type on the track mask and the drag it applies."""

    color: Color
    drag_force: float


@dataclass(frozen=True)
class CarConfig:
    acc: float
    reverse_force: float
    brake_force: float
    angular_speed: float
    width: int
    height: int


@dataclass
class GameState:
    """Mutable state shared between the menu and the race."""

    screen: Screen = Screen.MENU
    mode: Mode = Mode.SINGLEPLAYER
    debug: bool = False
    map: CurrentMap = CurrentMap.INTERLAGOS
    camera_view: CameraView = CameraView.FIRST_PERSON
    race_time: float = 0.0
    status: Status = Status.COUNTDOWN
    max_laps: int = 0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

CAMERA_SMOOTHNESS = 0.05
HUD_OPACITY = 200

DEFAULT_CAR_CONFIG = CarConfig(
    acc=0.1,
    reverse_force=0.2,
    brake_force=0.988,
    angular_speed=0.035,
    width=150,
    height=75,
)

GAME_MUSIC_PATH = "resources/sounds/game-music.mp3"
MENU_MUSIC_PATH = "resources/sounds/menu-music.mp3"
CAR_SOUND_PATH = "resources/sounds/f1s.mp3"
CLICK_BUTTON_SOUND_PATH = "resources/sounds/click.mp3"
SEMAPHORE_SOUND_PATH = "resources/sounds/click.mp3"

GAME_MUSIC_VOLUME = 0.02
MENU_MUSIC_VOLUME = 0.005
CAR_VOLUME = 0.02

MAPS = (
    MapInfo(
        name="Interlagos",
        background_path="resources/maps/interlagos_map.png",
        mask_path="resources/masks/interlagos_mask.png",
        minimap_path="resources/minimaps/interlagos_minimap.png",
        start_positions=((4721.0, 1910.0), (4900.0, 2061.0)),
        start_angle=2.75,
        max_laps=3,
        checkpoints=(
            Checkpoint((4584.0, 2078.0), 2.73),
            Checkpoint((1816.0, 6076.0), 1.75),
            Checkpoint((3838.0, 8251.0), 0.0),
            Checkpoint((10380.0, 8239.0), 0.0),
            Checkpoint((9575.0, 5176.0), -2.77),
            Checkpoint((7315.0, 2106.0), -0.63),
            Checkpoint((9755.0, 2619.0), -1.09),
            Checkpoint((12303.0, 4781.0), 0.07),
            Checkpoint((14136.0, 3216.0), -1.87),
            Checkpoint((9357.0, 341.0), -3.57),
        ),
    ),
    MapInfo(
        name="Secret",
        background_path="resources/masks/secret_mask.png",
        mask_path="resources/masks/secret_mask.png",
        minimap_path="resources/masks/secret_mask.png",
        start_positions=((7329.0, 1358.0), (7329.0, 1358.0)),
        start_angle=3.21,
        max_laps=1,
        checkpoints=(
            Checkpoint((7329.0, 1358.0), 3.21),
            Checkpoint((2520.0, 4478.0), 8.59),
            Checkpoint((6169.0, 5707.0), 14.13),
            Checkpoint((10700.0, 4978.0), 9.07),
        ),
    ),
)

TRACK_AREAS = (
    TrackArea((127, 127, 127), 0.997),  # asphalt
    TrackArea((255, 127, 39), 0.985),  # light kerb
    TrackArea((163, 73, 164), 0.965),  # heavy kerb
    TrackArea((34, 177, 76), 0.991),  # grass
)

OUTSIDE_TRACK_COLOR = (255, 255, 255)
CHECKPOINTS_COLOR = (0, 255, 0)

CAR_IMAGE_PATHS = (
    "resources/cars/branco.png",
    "resources/cars/azul.png",
    "resources/cars/laranja.png",
)
SPEEDOMETER_PATH = "resources/cars/velocimetro.png"

GAME_MODES = ("1 Jogador", "2 Jogadores")

BACKGROUND_PATH = "resources/menu/menu.png"
LOGO_BG_IMAGE_PATH = "resources/logo/logo_background.png"
LOGO_IMAGE_PATH = "resources/logo/formula_c-logo.png"

FONT_PATHS = (
    "resources/fonts/Formula-Regular.ttf",
    "resources/fonts/Formula-Bold.ttf",
    "resources/fonts/Formula-Black.ttf",
)

GHOST_CAR_DATA_PATH = "./data/best_laps/"
REFERENCE_DATA_PATH = "./data/references/"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def color_equals(a: Sequence[int], b: Sequence[int]) -> bool:
    """Compare two colours on their RGB channels, ignoring alpha."""
    return tuple(a[:3]) == tuple(b[:3])


def vector_dist(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def lerp_angle(a: float, b: float, t: float) -> float:
    """Interpolate between two angles in degrees along the shorter way."""
    diff = math.fmod(b - a + 180.0, 360.0) - 180.0
    return a + diff * t


def stringify_time(time: float, sign: bool = False) -> str:
    """Format seconds as ``M:SS.mmms`` or ``S.mmms``, optionally signed."""
    minutes = int(time / 60)
    seconds = time - minutes * 60
    prefix = ("+" if time > 0 else "-") if sign else ""
    if minutes > 0:
        return f"{prefix}{minutes}:{seconds:06.3f}s"
    return f"{prefix}{seconds:05.3f}s"


def drag_force_for(color: Sequence[int]) -> Optional[float]:
    """Drag factor of the track area with this colour, or None if none matches."""
    for area in TRACK_AREAS:
        if color_equals(color, area.color):
            return area.drag_force
    return None


def draw_text_centered_in_rect(surface, text, rect, font, color) -> pygame.Rect:
    """Draw text centred inside ``rect`` and return the area it covers."""
    x, y, width, height = rect
    text_width, text_height = font.size(text)
    left = x + (width - text_width) / 2.0
    top = y + (height - text_height) / 2.0
    rendered = font.render(text, True, color)
    return surface.blit(rendered, (round(left), round(top)))


def draw_text_with_shadow(surface, text, x, y, font, color) -> pygame.Rect:
    """Draw text with a one-pixel black drop shadow; return the text's area."""
    surface.blit(font.render(text, True, BLACK), (round(x) + 1, round(y) + 1))
    return surface.blit(font.render(text, True, color), (round(x), round(y)))