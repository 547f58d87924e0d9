"""Two-dimensional follow camera."""

from __future__ import annotations

import math
from dataclasses import dataclass

from formulac.common import CAMERA_SMOOTHNESS, CameraView, Mode, lerp_angle

RAD2DEG = 180.0 / math.pi

SINGLEPLAYER_ZOOM = 1.5
SPLITSCREEN_ZOOM = 1.35


def start_zoom_for(mode: Mode) -> float:
    """Base zoom level used for a game mode."""
    return SPLITSCREEN_ZOOM if mode == Mode.SPLITSCREEN else SINGLEPLAYER_ZOOM


@dataclass
class Camera:
    """A camera looking at ``target`` and drawing it at screen ``offset``."""

    target: tuple
    offset: tuple
    rotation: float = 0.0
    zoom: float = 1.0
    view_width: int = 0
    view_height: int = 0
    start_zoom: float = SINGLEPLAYER_ZOOM

    def set_view_size(self, width: int, height: int, mode: Mode) -> None:
        """Set the viewport size and the base zoom for ``mode``."""
        self.view_width = width
        self.view_height = height
        self.start_zoom = start_zoom_for(mode)

    def update_target(self, car, map_width: float, map_height: float,
                      camera_view: CameraView) -> None:
        """Follow ``car``, keeping the view inside the map and easing zoom and rotation."""
        half_w = self.view_width / (2.0 * self.zoom)
        half_h = self.view_height / (2.0 * self.zoom)

        x, y = float(car.pos[0]), float(car.pos[1])
        if x < half_w:
            x = half_w
        if y < half_h:
            y = half_h
        if x > map_width - half_w:
            x = map_width - half_w
        if y > map_height - half_h:
            y = map_height - half_h
        self.target = (x, y)

        target_zoom = self.start_zoom - car.vel / car.max_velocity
        self.zoom += (target_zoom - self.zoom) * 0.1

        if camera_view == CameraView.FIRST_PERSON:
            target_rotation = -car.angle * RAD2DEG - 90.0
            self.rotation = lerp_angle(self.rotation, target_rotation, CAMERA_SMOOTHNESS)

    def world_to_screen(self, point) -> tuple:
        """Project a world point onto the screen."""
        dx = point[0] - self.target[0]
        dy = point[1] - self.target[1]
        rad = math.radians(self.rotation)
        cos_r, sin_r = math.cos(rad), math.sin(rad)
        sx = (dx * cos_r - dy * sin_r) * self.zoom + self.offset[0]
        sy = (dx * sin_r + dy * cos_r) * self.zoom + self.offset[1]
        return (sx, sy)