"""
3D geometry for the planner's local frame

Local frame axes: x east, y up, z south (meters).
"""

import math
from dataclasses import dataclass
from typing import Optional

EPSILON = 1e-9


@dataclass(frozen=True)
class Vector3:
    """3D vector in the local frame"""
    x: float = 0.0  # East (m)
    y: float = 0.0  # Up (m)
    z: float = 0.0  # South (m)

    def __add__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> 'Vector3':
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __neg__(self) -> 'Vector3':
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: 'Vector3') -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: 'Vector3') -> 'Vector3':
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def normalized(self) -> 'Vector3':
        mag = self.magnitude()
        if mag > 0:
            return Vector3(self.x / mag, self.y / mag, self.z / mag)
        return Vector3()

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))

    def as_tuple(self):
        return (self.x, self.y, self.z)


WORLD_UP = Vector3(0.0, 1.0, 0.0)
EAST = Vector3(1.0, 0.0, 0.0)


@dataclass(frozen=True)
class Ray:
    """Half-line from origin along a unit direction"""
    origin: Vector3
    direction: Vector3

    def at(self, t: float) -> Vector3:
        return self.origin + self.direction * t


@dataclass(frozen=True)
class Plane:
    """Plane through `point` with unit `normal`"""
    normal: Vector3
    point: Vector3

    @classmethod
    def from_normal_and_point(cls, normal: Vector3, point: Vector3) -> 'Plane':
        return cls(normal.normalized(), point)

    def distance_to(self, p: Vector3) -> float:
        return self.normal.dot(p - self.point)

    def intersect_ray(self, ray: Ray) -> Optional[Vector3]:
        """
        Point where the ray crosses the plane

        Returns:
            Intersection, or None if the ray is parallel to the plane or
            the plane is behind the ray origin
        """
        denom = self.normal.dot(ray.direction)
        if abs(denom) < EPSILON:
            return None

        t = self.normal.dot(self.point - ray.origin) / denom
        if t < 0:
            return None
        return ray.at(t)
