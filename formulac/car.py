"""Race cars: driving physics, track sensing and lap timing."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import pygame

from formulac.common import (
    CAR_SOUND_PATH,
    CAR_VOLUME,
    CHECKPOINTS_COLOR,
    OUTSIDE_TRACK_COLOR,
    TRACK_AREAS,
    WHITE,
    CarConfig,
    Checkpoint,
    color_equals,
    drag_force_for,
    vector_dist,
)

RAD2DEG = 180.0 / math.pi

RESPAWN_SPEED = 10.0
GHOST_ALPHA = 127
SENSOR_REACH = 0.4


@dataclass
class Track:
    """The pixel mask cars read the surface from, and the checkpoints of a lap."""

    mask: pygame.Surface
    checkpoints: tuple

    @property
    def width(self) -> int:
        return self.mask.get_width()

    @property
    def height(self) -> int:
        return self.mask.get_height()

    @property
    def min_dist_to_detect(self) -> float:
        """How close a car must be to a checkpoint for it to count."""
        return float(self.width // 30)

    def color_at(self, x: int, y: int) -> tuple:
        """RGB colour of the mask at a pixel, or the outside colour off the map."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return tuple(OUTSIDE_TRACK_COLOR)
        return tuple(self.mask.get_at((x, y)))[:3]


def load_track(mask_path, checkpoints: Sequence[Checkpoint]) -> Track:
    """Load a track mask image and pair it with its checkpoints."""
    mask = pygame.image.load(str(mask_path))
    return Track(mask=mask, checkpoints=tuple(checkpoints))


@dataclass
class Car:
    """A car on the track, driven by a player or replaying a recorded lap."""

    id: int
    name: str
    pos: tuple
    angle: float
    acc: float
    width: int
    height: int
    angular_speed: float
    max_angular_speed: float
    min_angular_speed: float
    brake_force: float
    reverse_force: float
    max_velocity: float
    min_turn_speed: float
    color: tuple
    ghost: bool = False
    ghost_active: bool = False
    change_lap_flag: bool = False
    lap: int = -1
    vel: float = 0.0
    start_lap_time: float = 0.0
    best_lap_time: float = math.inf
    last_lap_time: float = math.inf
    checkpoint: int = 0
    drag_force: float = TRACK_AREAS[0].drag_force
    floor_color: tuple = tuple(OUTSIDE_TRACK_COLOR)
    ref_frame: int = 0
    texture: Optional[pygame.Surface] = field(default=None, repr=False)
    sound: Optional[object] = field(default=None, repr=False)

    # -- per-frame update -------------------------------------------------

    def update(self, track: Track, now: float) -> None:
        """Advance one frame: read the floor, count laps, apply physics."""
        if self.ghost:
            return
        self._update_floor_color(track)
        self._update_lap_status(track, now)
        self._apply_drag_force()
        self._apply_movement()
        self._return_if_outside(track)

    def move(self, up: bool, down: bool, right: bool, left: bool) -> None:
        """Apply the driver's inputs for this frame."""
        if up:
            self.accelerate()
        if self.can_turn():
            if left:
                self.turn_left()
            if right:
                self.turn_right()
        if down:
            if self.vel < self.min_turn_speed:
                self.reverse()
            else:
                self.brake()

    # -- controls ---------------------------------------------------------

    def can_turn(self) -> bool:
        """Whether the car is fast enough, either way, to steer."""
        return abs(self.vel) > self.min_turn_speed

    def accelerate(self) -> None:
        self.vel += self.acc

    def brake(self) -> None:
        self.vel *= self.brake_force

    def reverse(self) -> None:
        self.vel -= self.acc * self.reverse_force

    def turn_left(self) -> None:
        self._turn(-self.angular_speed)

    def turn_right(self) -> None:
        self._turn(self.angular_speed)

    def _turn(self, amount: float) -> None:
        speed_ratio = self.vel / self.max_velocity
        sensitivity = self.max_angular_speed - (
            self.max_angular_speed - self.min_angular_speed
        ) * speed_ratio
        self.angle += amount * sensitivity

    # -- sensing and physics ----------------------------------------------

    def _update_floor_color(self, track: Track) -> None:
        x = int(self.pos[0] + math.cos(self.angle) * self.width * SENSOR_REACH)
        y = int(self.pos[1] + math.sin(self.angle) * self.width * SENSOR_REACH)
        self.floor_color = track.color_at(x, y)

    def _is_valid_checkpoint(self, track: Track, index: int) -> bool:
        if not color_equals(self.floor_color, CHECKPOINTS_COLOR):
            return False
        target = track.checkpoints[index].pos
        return vector_dist(self.pos, target) < track.min_dist_to_detect

    def _update_lap_status(self, track: Track, now: float) -> None:
        self.change_lap_flag = False
        next_expected = (self.checkpoint + 1) % len(track.checkpoints)
        if not self._is_valid_checkpoint(track, next_expected):
            return

        self.checkpoint = next_expected
        if next_expected == 0:
            self.change_lap_flag = True
            self.lap += 1
            if self.lap > 0:
                self.last_lap_time = now - self.start_lap_time
                if self.last_lap_time < self.best_lap_time:
                    self.best_lap_time = self.last_lap_time
            self.start_lap_time = now

    def _apply_drag_force(self) -> None:
        drag = drag_force_for(self.floor_color)
        if drag is not None:
            self.drag_force = drag

    def _apply_movement(self) -> None:
        self.vel *= self.drag_force
        self.pos = (
            self.pos[0] + math.cos(self.angle) * self.vel,
            self.pos[1] + math.sin(self.angle) * self.vel,
        )

    def _return_if_outside(self, track: Track) -> None:
        if not color_equals(self.floor_color, OUTSIDE_TRACK_COLOR):
            return
        respawn = track.checkpoints[self.checkpoint]
        self.vel = RESPAWN_SPEED
        self.pos = tuple(respawn.pos)
        self.angle = respawn.angle

    # -- drawing ----------------------------------------------------------

    def draw(self, surface: pygame.Surface, camera) -> Optional[pygame.Rect]:
        """Draw the car as seen through ``camera``; return the area drawn."""
        if self.ghost and not self.ghost_active:
            return None

        size = (
            max(1, round(self.width * camera.zoom)),
            max(1, round(self.height * camera.zoom)),
        )
        if self.texture is not None:
            image = pygame.transform.smoothscale(self.texture, size)
        else:
            image = pygame.Surface(size, pygame.SRCALPHA)
            image.fill(self.color)
        if self.ghost:
            image.set_alpha(GHOST_ALPHA)

        heading = self.angle * RAD2DEG + camera.rotation
        rotated = pygame.transform.rotate(image, -heading)
        cx, cy = camera.world_to_screen(self.pos)
        rect = rotated.get_rect(center=(round(cx), round(cy)))
        return surface.blit(rotated, rect)


def _load_texture(path) -> Optional[pygame.Surface]:
    if path is None:
        return None
    try:
        return pygame.image.load(str(path))
    except (pygame.error, FileNotFoundError):
        return None


def _start_engine_sound() -> Optional[object]:
    if not pygame.mixer.get_init():
        return None
    try:
        sound = pygame.mixer.Sound(CAR_SOUND_PATH)
    except (pygame.error, FileNotFoundError):
        return None
    sound.set_volume(CAR_VOLUME)
    sound.play(loops=-1)
    return sound


def create_car(pos, angle: float, config: CarConfig, texture_path, color,
               ghost: bool, car_id: int, name: str, track: Track, now: float) -> Car:
    """Build a car at the start of a race on ``track``."""
    top_drag = TRACK_AREAS[0].drag_force
    max_velocity = top_drag / (1 - top_drag) * config.acc
    return Car(
        id=car_id,
        name=name[:31],
        pos=(float(pos[0]), float(pos[1])),
        angle=angle,
        acc=config.acc,
        width=config.width,
        height=config.height,
        angular_speed=config.angular_speed,
        max_angular_speed=config.angular_speed * 30,
        min_angular_speed=config.angular_speed * 7,
        brake_force=config.brake_force,
        reverse_force=config.reverse_force,
        max_velocity=max_velocity,
        min_turn_speed=max_velocity / 50,
        color=color if color is not None else WHITE,
        ghost=ghost,
        start_lap_time=now,
        checkpoint=len(track.checkpoints) - 1,
        texture=_load_texture(texture_path),
        sound=None if ghost else _start_engine_sound(),
    )