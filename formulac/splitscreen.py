"""Two players racing side by side on a split screen."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import pygame

from formulac.camera import Camera
from formulac.car import create_car
from formulac.common import (
    BLACK,
    BLUE,
    CAR_IMAGE_PATHS,
    DEFAULT_CAR_CONFIG,
    FONT_PATHS,
    HUD_GREY,
    ORANGE,
    RED,
    SEMAPHORE_SOUND_PATH,
    YELLOW,
    MapInfo,
    Status,
    draw_text_with_shadow,
)

GO_COUNT = 4
BEEP_INTERVAL = 1.0
WINNER_DISPLAY_TIME = 3.5
SEMAPHORE_SIZE = 48
WINNER_FONT_SIZE = 128


@lru_cache(maxsize=None)
def _font(index: int, size: int) -> pygame.font.Font:
    if not pygame.font.get_init():
        pygame.font.init()
    try:
        return pygame.font.Font(FONT_PATHS[index], size)
    except (OSError, pygame.error):
        return pygame.font.Font(None, size)


def _load_sound(path) -> Optional[object]:
    if not pygame.mixer.get_init():
        return None
    try:
        return pygame.mixer.Sound(path)
    except (pygame.error, FileNotFoundError):
        return None


@dataclass
class Semaphore:
    """Start lights: one beep per second, the race starts after the fourth."""

    last_sound_time: float
    count: int = 0
    sound: Optional[object] = None

    def _beep(self) -> None:
        if self.sound is not None:
            self.sound.play()

    def update(self, now: float) -> bool:
        """Advance the countdown; True once the race may start."""
        started = self.count == GO_COUNT
        if started:
            self._beep()
        if now - self.last_sound_time > BEEP_INTERVAL:
            self._beep()
            self.last_sound_time = now
            self.count += 1
        return started

    def lights(self) -> tuple:
        """Which of the three lights are lit."""
        return (self.count >= 1, self.count >= 2, self.count >= 3)

    def draw(self, surface, x: float, y: float, size: int) -> None:
        for slot, lit in zip((-3, 0, 3), self.lights()):
            pygame.draw.circle(surface, RED if lit else BLACK, (x + slot * size, y), size)

    def stop(self) -> None:
        if self.sound is not None:
            self.sound.stop()


class SplitscreenSession:
    """A race between two local players, each with half of the screen."""

    def __init__(self) -> None:
        self.winner = None
        self.semaphore: Optional[Semaphore] = None

    def _require_semaphore(self) -> Semaphore:
        if self.semaphore is None:
            raise RuntimeError("splitscreen session is not loaded")
        return self.semaphore

    def load(self, game, map_info: MapInfo) -> None:
        """Place both players on the grid and start the countdown."""
        now = game.clock()
        self.semaphore = Semaphore(now - 0.5, sound=_load_sound(SEMAPHORE_SOUND_PATH))
        self.winner = None

        state = game.state
        state.status = Status.COUNTDOWN
        width, height = game.screen_width, game.screen_height
        game.minimap_pos = (width - game.track_hud.get_width(), 10)

        first = create_car(
            map_info.start_positions[0], map_info.start_angle, DEFAULT_CAR_CONFIG,
            CAR_IMAGE_PATHS[1], BLUE, False, 1, "Player 1", game.track, now,
        )
        second = create_car(
            map_info.start_positions[1], map_info.start_angle, DEFAULT_CAR_CONFIG,
            CAR_IMAGE_PATHS[2], ORANGE, False, 2, "Player 2", game.track, now,
        )
        game.cars.add(first)
        game.cars.add(second)
        game.best_lap_time_player = first

        game.camera1 = Camera(target=first.pos, offset=(width / 4.0, height / 2.0),
                              rotation=0.0, zoom=0.5)
        game.camera2 = Camera(target=second.pos, offset=(width * 3.0 / 4.0, height / 2.0),
                              rotation=0.0, zoom=0.5)
        for camera in (game.camera1, game.camera2):
            camera.set_view_size(width // 2, height, state.mode)

    def update(self, game, keys, now: float) -> None:
        """Run the countdown, or drive both cars and check for the end of the race."""
        semaphore = self._require_semaphore()
        state = game.state
        if state.status == Status.COUNTDOWN:
            if semaphore.update(now):
                state.status = Status.STARTED
            return

        track = game.track
        first = game.cars.get(1)
        game.camera1.update_target(first, track.width, track.height, state.camera_view)
        first.move(bool(keys[pygame.K_w]), bool(keys[pygame.K_s]),
                   bool(keys[pygame.K_d]), bool(keys[pygame.K_a]))

        second = game.cars.get(2)
        game.camera2.update_target(second, track.width, track.height, state.camera_view)
        second.move(bool(keys[pygame.K_UP]), bool(keys[pygame.K_DOWN]),
                    bool(keys[pygame.K_RIGHT]), bool(keys[pygame.K_LEFT]))

        for car in game.cars:
            self.update_winner(car, state.max_laps)
            car.update(track, now)

        if self.winner is not None and now - self.winner.start_lap_time > WINNER_DISPLAY_TIME:
            state.status = Status.ENDED

    def update_winner(self, car, max_laps: int) -> None:
        """The first car to complete ``max_laps`` wins."""
        if self.winner is None and car.lap == max_laps:
            self.winner = car

    def draw(self, game, surface) -> None:
        width, height = game.screen_width, game.screen_height
        if self.winner is not None:
            track = game.track
            game.camera1.update_target(self.winner, track.width, track.height,
                                       game.state.camera_view)
            game.camera1.offset = (width / 2.0, height / 2.0)
            game.draw_map(surface, game.camera1)

            text = f"Jogador {self.winner.id} Ganhou"
            font = _font(1, WINNER_FONT_SIZE)
            draw_text_with_shadow(surface, text, (width - font.size(text)[0]) / 2.0,
                                  (height - WINNER_FONT_SIZE) / 4.0, font, YELLOW)
            return

        self._draw_view(game, surface, game.camera1, (0, 0, width, height))
        self._draw_view(game, surface, game.camera2, (width // 2, 0, width - width // 2, height))
        pygame.draw.rect(surface, HUD_GREY, pygame.Rect(round(width / 2.0 - 5), 0, 10, height))

        if game.state.status == Status.COUNTDOWN:
            semaphore = self._require_semaphore()
            semaphore.draw(surface, width / 4.0, height / 2.0, SEMAPHORE_SIZE)
            semaphore.draw(surface, width * 3.0 / 4.0, height / 2.0, SEMAPHORE_SIZE)

    @staticmethod
    def _draw_view(game, surface, camera, clip) -> None:
        previous = surface.get_clip()
        surface.set_clip(pygame.Rect(clip))
        try:
            game.draw_map(surface, camera)
        finally:
            surface.set_clip(previous)

    def draw_hud(self, game, surface) -> None:
        if self.winner is None:
            game.draw_player_hud(surface, game.cars.get(1), 0)
            game.draw_player_hud(surface, game.cars.get(2), game.screen_width // 2)

    def cleanup(self) -> None:
        if self.semaphore is not None:
            self.semaphore.stop()
        self.semaphore = None
        self.winner = None