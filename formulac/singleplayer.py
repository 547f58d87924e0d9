"""Single-player time trial against a replay of the best recorded lap."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

import pygame

from formulac.camera import Camera
from formulac.car import create_car
from formulac.common import (
    BLACK,
    CAR_IMAGE_PATHS,
    DEFAULT_CAR_CONFIG,
    FONT_PATHS,
    GHOST_CAR_DATA_PATH,
    WHITE,
    MapInfo,
    Status,
)
from formulac.frames import CarFrame, last_frame, read_frames, write_frames

PLAYER_ID = 1
GHOST_ID = 99
HIDDEN_POS = (-1000.0, -1000.0)
DEBUG_BACKGROUND = (196, 196, 196, 200)
DEBUG_TOP = 500


@lru_cache(maxsize=None)
def _font(index: int, size: int) -> pygame.font.Font:
    if not pygame.font.get_init():
        pygame.font.init()
    try:
        return pygame.font.Font(FONT_PATHS[index], size)
    except (OSError, pygame.error):
        return pygame.font.Font(None, size)


def ghost_path(data_dir, map_name: str) -> Path:
    """File holding the best lap recorded on ``map_name``."""
    return Path(data_dir) / f"{map_name}.bin"


@dataclass
class GhostRecorder:
    """Records the lap being driven and replays the best one."""

    path: Path
    best_lap: list = field(default_factory=list)
    current_lap: list = field(default_factory=list)
    replay_index: int = 0

    def load(self) -> float:
        """Read the stored best lap and return its time, or infinity if none.

        A missing file is created empty.
        """
        try:
            frames = read_frames(self.path)
        except FileNotFoundError:
            try:
                Path(self.path).touch()
            except OSError:
                pass
            return math.inf
        self.best_lap.extend(frames)
        return last_frame(self.best_lap).time if self.best_lap else math.inf

    def save(self) -> bool:
        """Make the current lap the best one and store it; False if it cannot be written."""
        try:
            write_frames(self.path, self.current_lap)
        except OSError:
            return False
        self.best_lap = list(self.current_lap)
        return True

    def record(self, car, now: float) -> CarFrame:
        """Append the car's present position to the current lap."""
        frame = CarFrame(
            (float(car.pos[0]), float(car.pos[1])),
            float(car.angle),
            now - car.start_lap_time,
        )
        self.current_lap.append(frame)
        return frame

    def replay(self, ghost) -> None:
        """Move ``ghost`` to the next frame of the best lap, or hide it past the end."""
        ghost.ghost_active = self.replay_index < len(self.best_lap)
        if ghost.ghost_active:
            frame = self.best_lap[self.replay_index]
            self.replay_index += 1
            ghost.pos = tuple(frame.pos)
            ghost.angle = frame.angle
        else:
            ghost.pos = HIDDEN_POS

    def update(self, player, ghost, best_lap_time: float, now: float) -> None:
        """Handle a finished lap, then advance the replay and the recording."""
        if player.change_lap_flag:
            self.replay_index = 0
            if player.last_lap_time <= best_lap_time and player.lap > 0:
                self.save()
            self.current_lap.clear()

        if player.lap >= 0:
            self.replay(ghost)
            self.record(player, now)

    def debug_lines(self) -> list:
        return [
            "Ghost car debug",
            f"Recording i: {len(self.best_lap)}",
            f"Playback i: {self.replay_index}",
            f"TotalLapTime: {last_frame(self.best_lap).time:.2f}",
            "",
            "Current lap debug",
            f"Recording i: {len(self.current_lap)}",
        ]


class SingleplayerSession:
    """One player racing against the ghost of the best lap."""

    def __init__(self, data_dir=GHOST_CAR_DATA_PATH) -> None:
        self.data_dir = data_dir
        self.recorder: Optional[GhostRecorder] = None

    def _require_recorder(self) -> GhostRecorder:
        if self.recorder is None:
            raise RuntimeError("singleplayer session is not loaded")
        return self.recorder

    def load(self, game, map_info: MapInfo) -> None:
        """Place the player and the ghost on the track and set up the camera."""
        state = game.state
        state.status = Status.STARTED
        width, height = game.screen_width, game.screen_height
        game.minimap_pos = (width - game.track_hud.get_width(), 10)

        self.recorder = GhostRecorder(ghost_path(self.data_dir, map_info.name))
        now = game.clock()

        ghost = create_car(
            HIDDEN_POS, 0.0, DEFAULT_CAR_CONFIG, CAR_IMAGE_PATHS[0], WHITE,
            True, GHOST_ID, "Melhor Volta", game.track, now,
        )
        player = create_car(
            map_info.start_positions[0], map_info.start_angle, DEFAULT_CAR_CONFIG,
            CAR_IMAGE_PATHS[0], WHITE, False, PLAYER_ID, "Player 1", game.track, now,
        )

        game.best_lap_time_player = ghost
        ghost.best_lap_time = self.recorder.load()

        game.cars.add(ghost)
        game.cars.add(player)

        camera = Camera(target=player.pos, offset=(width / 2.0, height / 2.0),
                        rotation=0.0, zoom=0.5)
        camera.set_view_size(width, height, state.mode)
        game.camera1 = camera

    def update(self, game, keys, now: float) -> None:
        """Advance the player, the ghost replay and the camera by one frame."""
        recorder = self._require_recorder()
        player = game.cars.get(PLAYER_ID)
        ghost = game.cars.get(GHOST_ID)

        recorder.update(player, ghost, game.best_lap_time_player.best_lap_time, now)
        game.camera1.update_target(player, game.track.width, game.track.height,
                                   game.state.camera_view)
        player.move(bool(keys[pygame.K_w]), bool(keys[pygame.K_s]),
                    bool(keys[pygame.K_d]), bool(keys[pygame.K_a]))
        player.update(game.track, now)

    def draw(self, game, surface) -> None:
        game.draw_map(surface, game.camera1)

    def draw_hud(self, game, surface) -> None:
        player = game.cars.get(PLAYER_ID)
        game.draw_player_hud(surface, player, 0)
        if game.state.debug:
            self._draw_ghost_debug(surface, game.screen_width)

    def _draw_ghost_debug(self, surface, screen_width: int) -> None:
        lines = self._require_recorder().debug_lines()
        font = _font(0, 20)
        line_height = font.get_linesize()
        text_width = max(font.size(line)[0] for line in lines)
        text_height = line_height * len(lines)
        left = screen_width - text_width - 10

        panel = pygame.Surface((text_width + 10, text_height + 10), pygame.SRCALPHA)
        panel.fill(DEBUG_BACKGROUND)
        surface.blit(panel, (left, DEBUG_TOP))
        for row, line in enumerate(lines):
            if line:
                surface.blit(font.render(line, True, BLACK),
                             (left, DEBUG_TOP + row * line_height))

    def cleanup(self) -> None:
        if self.recorder is not None:
            self.recorder.best_lap.clear()
            self.recorder.current_lap.clear()
        self.recorder = None