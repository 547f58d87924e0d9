"""The race screen: map, cars, ranking and heads-up display."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, Sequence

import pygame

from formulac.car import load_track
from formulac.common import (
    BLACK,
    GHOST_CAR_DATA_PATH,
    GREEN,
    HUD_GREY,
    HUD_OPACITY,
    LOGO_BG_IMAGE_PATH,
    MAPS,
    PURPLE,
    RED,
    REFERENCE_DATA_PATH,
    SPEEDOMETER_PATH,
    WHITE,
    FONT_PATHS,
    GameState,
    MapInfo,
    Mode,
    Screen,
    Status,
    draw_text_centered_in_rect,
    draw_text_with_shadow,
    stringify_time,
    vector_dist,
)
from formulac.frames import read_frames
from formulac.singleplayer import GHOST_ID, SingleplayerSession
from formulac.splitscreen import SplitscreenSession
from formulac.standings import CarList

RANKING_INTERVAL = 0.5
BEST_LAP_HIGHLIGHT = 3.0
BLINK_INTERVAL = 0.3
BLINK_LIMIT = 10
HUD_PLAYER_LIST_WIDTH = 330
LOGO_SIZE = 256
LIST_ROW_HEIGHT = 36
LIST_PADDING = 9
LIST_FONT_SIZE = 20
LEADER_GAP = "-:--.---"
DEBUG_BACKGROUND = (196, 196, 196, 200)
HUD_BACKGROUND = (*HUD_GREY, HUD_OPACITY)


@lru_cache(maxsize=None)
def _font(index: int, size: int) -> pygame.font.Font:
    if not pygame.font.get_init():
        pygame.font.init()
    try:
        return pygame.font.Font(FONT_PATHS[index], size)
    except (OSError, pygame.error):
        return pygame.font.Font(None, size)


def _scaled(image: pygame.Surface, size) -> pygame.Surface:
    return pygame.transform.scale(image, (max(1, int(size[0])), max(1, int(size[1]))))


def _require_image(path, size=None) -> pygame.Surface:
    image = pygame.image.load(str(path))
    return _scaled(image, size) if size is not None else image


def _optional_image(path, size=None) -> Optional[pygame.Surface]:
    try:
        return _require_image(path, size)
    except (pygame.error, OSError):
        return None


def _fill_rect(surface, rect, color) -> None:
    x, y, width, height = rect
    if width <= 0 or height <= 0:
        return
    panel = pygame.Surface((math.ceil(width), math.ceil(height)), pygame.SRCALPHA)
    panel.fill(color)
    surface.blit(panel, (round(x), round(y)))


def _blit_faded(surface, image, pos, alpha: int) -> None:
    faded = image.copy()
    faded.set_alpha(alpha)
    surface.blit(faded, (round(pos[0]), round(pos[1])))


def _color_lerp(a, b, t: float) -> tuple:
    t = min(1.0, max(0.0, t))
    return tuple(int(ca + (cb - ca) * t) for ca, cb in zip(a, b))


def nearest_reference_index(reference: Sequence, pos) -> int:
    """Index of the reference frame closest to ``pos``; 0 for an empty reference."""
    lowest = math.inf
    nearest = 0
    for index, frame in enumerate(reference):
        dist = vector_dist(frame.pos, pos)
        if lowest > dist:
            lowest = dist
            nearest = index
    return nearest


def reference_frame(car, reference: Sequence, mode: Mode) -> int:
    """How far along the race ``car`` is, measured in reference-lap frames."""
    if car.lap == -1 and not car.ghost:
        return 0
    nearest = nearest_reference_index(reference, car.pos)
    if mode == Mode.SINGLEPLAYER:
        return nearest
    return len(reference) * car.lap + nearest


def ranking_compare(a, b) -> float:
    """Positive when ``b`` is further along than ``a``."""
    return b.ref_frame - a.ref_frame


@dataclass
class BestLapMessage:
    """Blinking state of the best-lap banner."""

    start: float = 0.0
    active: bool = False
    count: int = 0

    def update(self, now: float, until: float) -> bool:
        """Advance the blink and return whether the banner is visible."""
        if until < now:
            return False
        if now - self.start >= BLINK_INTERVAL:
            self.active = not self.active
            self.start = now
            if self.active:
                self.count += 1
            if self.count > BLINK_LIMIT:
                self.active = False
                self.count = 0
        return self.active


class Game:
    """The race in progress, in whichever mode the menu selected."""

    def __init__(self, state: Optional[GameState] = None, screen_width: int = 1280,
                 screen_height: int = 720, clock: Optional[Callable[[], float]] = None,
                 maps: Sequence[MapInfo] = MAPS, reference_dir=REFERENCE_DATA_PATH,
                 ghost_dir=GHOST_CAR_DATA_PATH) -> None:
        self.state = state if state is not None else GameState()
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.clock = clock if clock is not None else time.monotonic
        self.maps = tuple(maps)
        self.reference_dir = reference_dir
        self.ghost_dir = ghost_dir
        self.hud_player_list_width = HUD_PLAYER_LIST_WIDTH

        self.cars = CarList()
        self.reference: list = []
        self.camera1 = None
        self.camera2 = None
        self.minimap_pos = (0, 0)
        self.track = None
        self.track_hud: Optional[pygame.Surface] = None
        self.background: Optional[pygame.Surface] = None
        self.speedometer: Optional[pygame.Surface] = None
        self.logo: Optional[pygame.Surface] = None
        self.best_lap_time_player = None
        self.best_lap_until = 0.0
        self.message = BestLapMessage()
        self.session = None
        self._last_ranking = 0.0
        self._map_loaded = False

    @property
    def map_width(self) -> int:
        return self.background.get_width() if self.background is not None else 0

    @property
    def map_height(self) -> int:
        return self.background.get_height() if self.background is not None else 0

    # -- life cycle -------------------------------------------------------

    def setup(self) -> None:
        """Prepare the car list, the reference lap and the logo."""
        self.cars = CarList()
        self.reference = []
        self.logo = _optional_image(LOGO_BG_IMAGE_PATH, (LOGO_SIZE, LOGO_SIZE))

    def load(self) -> None:
        """Start a race on the selected map in the selected mode."""
        state = self.state
        state.screen = Screen.GAME
        map_info = self.maps[state.map]
        self._load_map(map_info)

        self.message = BestLapMessage()
        if state.mode == Mode.SINGLEPLAYER:
            self.session = SingleplayerSession(self.ghost_dir)
        else:
            self.session = SplitscreenSession()
        self.session.load(self, map_info)

    def cleanup(self) -> None:
        """Release everything the race holds."""
        if self._map_loaded:
            self._map_cleanup()
        self.logo = None
        self.reference = []
        self.cars.clear()

    def _load_map(self, map_info: MapInfo) -> None:
        state = self.state
        state.max_laps = map_info.max_laps
        state.race_time = self.clock()
        debug = state.debug

        self.background = _require_image(map_info.mask_path if debug else map_info.background_path)
        dial = self.screen_width // 6
        self.speedometer = _optional_image(SPEEDOMETER_PATH, (dial, dial))
        self.track_hud = _require_image(
            map_info.mask_path if debug else map_info.minimap_path,
            (self.screen_width // 4, self.screen_height // 4),
        )
        self.track = load_track(map_info.mask_path, map_info.checkpoints)
        self.reference = self._read_reference(map_info.name)
        self._map_loaded = True

    def _read_reference(self, map_name: str) -> list:
        path = Path(self.reference_dir) / f"{map_name}_reference.bin"
        try:
            return read_frames(path)
        except FileNotFoundError:
            return []

    def _map_cleanup(self) -> None:
        for car in self.cars:
            if car.sound is not None:
                car.sound.stop()
        self.track = None
        self.cars.clear()
        self.background = None
        self.speedometer = None
        self.track_hud = None
        if self.session is not None:
            self.session.cleanup()
        self.session = None
        self.camera1 = None
        self.camera2 = None
        self._map_loaded = False

    # -- update -----------------------------------------------------------

    def update(self, keys, now: float) -> None:
        """Advance the race one frame; Q or the end of the race returns to the menu."""
        state = self.state
        if keys[pygame.K_q] or state.status == Status.ENDED:
            state.screen = Screen.MENU
            self._map_cleanup()
            return
        if self.session is None:
            raise RuntimeError("no race is loaded")

        self.update_ranking(now)
        for car in self.cars:
            self.update_best_lap_car(car, now)
        self.session.update(self, keys, now)

    def update_ranking(self, now: float) -> None:
        """Recompute race positions, at most twice a second."""
        if self.reference and now - self._last_ranking > RANKING_INTERVAL:
            for car in self.cars:
                car.ref_frame = reference_frame(car, self.reference, self.state.mode)
            self.cars.sort(ranking_compare)
            self._last_ranking = now

    def update_best_lap_car(self, car, now: float) -> None:
        """Make ``car`` the holder of the best lap if it just set one."""
        if car.lap < 1:
            return
        best = self.best_lap_time_player
        best_time = best.best_lap_time if best is not None else math.inf
        if car.change_lap_flag and car.last_lap_time <= best_time:
            self.best_lap_time_player = car
            self.best_lap_until = now + BEST_LAP_HIGHLIGHT

    # -- drawing ----------------------------------------------------------

    def draw(self, surface) -> None:
        if self.state.screen != Screen.GAME or self.session is None:
            return
        self.session.draw(self, surface)
        if self.state.status == Status.STARTED:
            self._draw_hud(surface)

    def draw_map(self, surface, camera) -> None:
        """Draw the track and every car as seen through ``camera``."""
        if self.background is not None:
            self._draw_background(surface, camera)
        for car in self.cars:
            car.draw(surface, camera)

    def _draw_background(self, surface, camera) -> None:
        zoom = camera.zoom
        if zoom <= 0:
            return
        clip = surface.get_clip()
        ox, oy = camera.offset
        corners = ((clip.left, clip.top), (clip.right, clip.top),
                   (clip.left, clip.bottom), (clip.right, clip.bottom))
        radius = max(math.hypot(cx - ox, cy - oy) for cx, cy in corners) / zoom + 2
        tx, ty = camera.target
        left, top = math.floor(tx - radius), math.floor(ty - radius)
        right, bottom = math.ceil(tx + radius), math.ceil(ty + radius)
        region = pygame.Rect(left, top, right - left, bottom - top).clip(
            self.background.get_rect())
        if region.width <= 0 or region.height <= 0:
            return

        piece = self.background.subsurface(region)
        scaled = _scaled(piece, (round(region.width * zoom), round(region.height * zoom)))
        rotated = pygame.transform.rotate(scaled, -camera.rotation)
        center = camera.world_to_screen((region.x + region.width / 2.0,
                                         region.y + region.height / 2.0))
        surface.blit(rotated, rotated.get_rect(center=(round(center[0]), round(center[1]))))

    def _draw_hud(self, surface) -> None:
        self.session.draw_hud(self, surface)
        if self.track_hud is not None:
            _blit_faded(surface, self.track_hud, self.minimap_pos, HUD_OPACITY)
        for car in self.cars:
            self.draw_player_in_minimap(surface, car)

    def draw_player_hud(self, surface, player, x) -> None:
        """Draw one player's panel with its left edge at ``x``."""
        width = self.hud_player_list_width
        self.draw_speedometer(surface, player, x + 192, self.screen_height - 192)
        self.draw_game_logo(surface, x + 32, 32)
        _fill_rect(surface, (x + 32, 166, width, 48), HUD_BACKGROUND)
        self.draw_laps(surface, player, x + 32, 166)
        self.draw_lap_time(surface, player, x + 32, 166)
        self.draw_player_list(surface, player, x + 32, 220)
        self.draw_best_lap_message(surface, x, self.screen_height / 4.0)
        if self.state.debug:
            self.draw_player_debug(surface, player, x + 32, 300)

    def draw_game_logo(self, surface, x, y) -> None:
        width = self.hud_player_list_width
        _fill_rect(surface, (x, y, width, 128), HUD_BACKGROUND)
        if self.logo is not None:
            _blit_faded(surface, self.logo,
                        (x + (width - LOGO_SIZE) / 2.0, y - (252 - 128) / 2.0), HUD_OPACITY)

    def draw_lap_time(self, surface, player, x, y) -> tuple:
        """Draw the running lap time, or the new best lap; return text and colour."""
        now = self.clock()
        if now < self.best_lap_until:
            text = stringify_time(self.best_lap_time_player.best_lap_time)
            color = PURPLE
        else:
            elapsed = 0.0 if player.lap == -1 else now - player.start_lap_time
            text = stringify_time(elapsed)
            color = WHITE
            if self.state.mode == Mode.SINGLEPLAYER:
                ghost = self.cars.get(GHOST_ID)
                if ghost is not None and ghost.ghost_active:
                    color = RED if ghost.ref_frame - player.ref_frame > 0 else GREEN

        half = self.hud_player_list_width / 2.0
        draw_text_centered_in_rect(surface, text, (x + half, y, half, 48), _font(0, 24), color)
        return text, color

    def draw_laps(self, surface, player, x, y) -> Optional[str]:
        """Draw the lap counter and return its text."""
        if self.state.mode == Mode.SINGLEPLAYER:
            text = f"Volta {player.lap + 1}"
        elif player.lap < self.state.max_laps:
            text = f"Volta {player.lap + 1}/{self.state.max_laps}"
        else:
            return None
        draw_text_centered_in_rect(surface, text, (x, y, self.hud_player_list_width / 2.0, 48),
                                   _font(0, 24), WHITE)
        return text

    def draw_speedometer(self, surface, player, x, y) -> str:
        """Draw the dial and needle for ``player``; return the speed shown."""
        if self.speedometer is not None:
            _blit_faded(surface, self.speedometer,
                        (x - self.speedometer.get_width() // 2,
                         y - self.speedometer.get_height() // 2), HUD_OPACITY)

        ratio = abs(player.vel) / player.max_velocity
        angle = ratio * (math.pi * 1.5) + math.pi * 0.75
        end = (math.cos(angle) * 100 + x, math.sin(angle) * 100 + y)
        pygame.draw.line(surface, RED, (x, y), end, 8)
        pygame.draw.circle(surface, RED, (x, y), 3)

        speed = 3600 * 0.75 * abs(player.vel) * 60 / max(self.map_width, 1)
        text = f"{speed:.0f}"
        color = _color_lerp(GREEN, RED, player.vel / player.max_velocity)
        big = _font(1, 48)
        draw_text_with_shadow(surface, text, x - big.size(text)[0] / 2, y + 24, big, color)
        small = _font(0, 16)
        draw_text_with_shadow(surface, "KM/H", x - small.size("KM/H")[0] / 2, y + 72,
                              small, WHITE)
        return text

    def draw_player_list(self, surface, player, x, y) -> list:
        """Draw the standings; return rows of (position, name, gap to the car ahead)."""
        gap_width = _font(0, LIST_FONT_SIZE).size(stringify_time(599.999, True))[0]
        width = self.hud_player_list_width
        now = self.clock()
        rows = []
        prev = None

        for car in self.cars:
            if car.ghost and not car.ghost_active:
                prev = car
                continue

            index = len(rows)
            own = car.id == player.id
            font = _font(1 if own else 0, LIST_FONT_SIZE)
            row_y = y + index * LIST_ROW_HEIGHT
            highlighted = car is self.best_lap_time_player and self.best_lap_until > now
            _fill_rect(surface, (x, row_y, width, LIST_ROW_HEIGHT),
                       PURPLE if highlighted else HUD_BACKGROUND)

            text_y = row_y + (LIST_ROW_HEIGHT - LIST_FONT_SIZE) / 2
            surface.blit(font.render(str(index + 1), True, WHITE),
                         (round(x + LIST_PADDING), round(text_y)))
            pygame.draw.rect(surface, car.color,
                             pygame.Rect(round(x + 36), round(row_y + LIST_PADDING + 2.5),
                                         2, round(LIST_ROW_HEIGHT / 2.5)))
            surface.blit(font.render(car.name, True, WHITE), (round(x + 44), round(text_y)))

            if index == 0 or prev is None:
                gap = LEADER_GAP
            else:
                gap = stringify_time((prev.ref_frame - car.ref_frame) / 60.0, True)
            draw_text_centered_in_rect(
                surface, gap, (x + width - gap_width, row_y, gap_width + 1, LIST_ROW_HEIGHT),
                font, WHITE)

            rows.append((index + 1, car.name, gap))
            prev = car
        return rows

    def draw_player_in_minimap(self, surface, player) -> tuple:
        """Mark ``player`` on the minimap; return the marker's centre."""
        hud_w = self.track_hud.get_width() if self.track_hud is not None else 0
        hud_h = self.track_hud.get_height() if self.track_hud is not None else 0
        x = hud_w * player.pos[0] / max(self.map_width, 1) + self.minimap_pos[0]
        y = hud_h * player.pos[1] / max(self.map_height, 1) + self.minimap_pos[1]
        if player.ghost:
            pygame.draw.circle(surface, BLACK, (x, y), 3.5, 1)
            pygame.draw.circle(surface, WHITE, (x, y), 3)
        else:
            pygame.draw.circle(surface, BLACK, (x, y), 6.5, 1)
            pygame.draw.circle(surface, player.color, (x, y), 6)
        return x, y

    def draw_best_lap_message(self, surface, x, y) -> bool:
        """Blink the best-lap banner; return whether it is showing."""
        visible = self.message.update(self.clock(), self.best_lap_until)
        if visible:
            rect = (x, y, self.screen_width, 0)
            if self.state.mode == Mode.SPLITSCREEN:
                rect = (x, y, self.screen_width / 2.0, self.screen_height / 4.0)
            draw_text_centered_in_rect(surface, "Melhor Volta", rect, _font(1, 64), PURPLE)
        return visible

    def draw_player_debug(self, surface, player, x, y) -> list:
        """Draw the debug panel for ``player``; return its lines."""
        now = self.clock()
        best = self.best_lap_time_player
        best_time = best.best_lap_time if best is not None else math.inf
        lines = [
            "Current car debug",
            f"ID: {player.id}",
            f"Lap: {player.lap}",
            f"Start Lap Time: {player.start_lap_time:.2f}",
            f"Current Lap Time: {now - player.start_lap_time:.2f}",
            f"Best Lap Time: {player.best_lap_time:.2f}",
            f"Checkpoint: {player.checkpoint}",
            f"Position: ({player.pos[0]:.1f}, {player.pos[1]:.1f})",
            f"Velocity: {player.vel:.2f}",
            f"Max velocity: {player.max_velocity:.2f}",
            f"Acceleration: {player.acc:.2f}",
            f"Size: {player.width}x{player.height}",
            f"Angle: {math.fmod(player.angle, 2 * math.pi):.2f}",
            f"Angular Speed: {player.angular_speed:.2f}",
            f"Min Turn Speed: {player.min_turn_speed:.2f}",
            f"Brake Force: {player.brake_force:.2f}",
            f"Drag Force: {player.drag_force:.3f}",
            f"Reverse Force: {player.reverse_force:.2f}",
            f"Reference Frame i: {player.ref_frame}",
            f"Lap Flag: {int(player.change_lap_flag)}",
            f"Last Lap Time: {player.last_lap_time:.2f}",
            f"GameBestLapTime: {best_time:.2f}",
        ]
        font = _font(0, 20)
        line_height = font.get_linesize()
        text_width = max(font.size(line)[0] for line in lines)
        _fill_rect(surface, (x, y, text_width + 10, line_height * len(lines) + 10),
                   DEBUG_BACKGROUND)
        for row, line in enumerate(lines):
            surface.blit(font.render(line, True, BLACK), (x, y + row * line_height))
        return lines