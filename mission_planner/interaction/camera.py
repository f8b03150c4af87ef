"""
Perspective camera for picking

Builds rays from the camera through a pointer position on the viewport.
"""

import math
from dataclasses import dataclass

from .geometry import EAST, EPSILON, WORLD_UP, Ray, Vector3


@dataclass
class PerspectiveCamera:
    """Pinhole camera looking from `position` at `target`"""
    position: Vector3
    target: Vector3 = Vector3()
    fov_deg: float = 75.0           # Vertical field of view
    viewport_width: float = 1280.0  # pixels
    viewport_height: float = 720.0
    up: Vector3 = WORLD_UP

    @property
    def aspect(self) -> float:
        return self.viewport_width / self.viewport_height

    @property
    def forward(self) -> Vector3:
        return (self.target - self.position).normalized()

    def _basis(self):
        forward = self.forward
        right = forward.cross(self.up)
        if right.magnitude() < EPSILON:
            # Looking straight along `up`; screen-right is east
            right = EAST
        right = right.normalized()
        cam_up = right.cross(forward).normalized()
        return forward, right, cam_up

    def to_ndc(self, client_x: float, client_y: float):
        """Pixel position to normalized device coordinates (-1..1, y up)"""
        ndc_x = (client_x / self.viewport_width) * 2 - 1
        ndc_y = -(client_y / self.viewport_height) * 2 + 1
        return ndc_x, ndc_y

    def ray_from_ndc(self, ndc_x: float, ndc_y: float) -> Ray:
        forward, right, cam_up = self._basis()
        tan_half = math.tan(math.radians(self.fov_deg) / 2)
        direction = (forward
                     + right * (ndc_x * tan_half * self.aspect)
                     + cam_up * (ndc_y * tan_half))
        return Ray(self.position, direction.normalized())

    def ray_from_client(self, client_x: float, client_y: float) -> Ray:
        """Ray through a pointer position in viewport pixels"""
        return self.ray_from_ndc(*self.to_ndc(client_x, client_y))
