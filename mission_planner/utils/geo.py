"""
Geographic utilities

Coordinate conversions between GPS and the planner's local 3D frame,
and distance calculations.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

EARTH_RADIUS_M = 6371000.0              # Mean radius, used for haversine
EARTH_CIRCUMFERENCE_M = 40075016.686    # Equatorial circumference
DEFAULT_ZOOM = 18                       # Matches map tile precision

# Web Mercator is undefined past this latitude
MAX_MERCATOR_LAT = 85.0511287798


class CoordinateError(ValueError):
    """Raised when a coordinate cannot be transformed (non-finite, polar)"""
    pass


def _require_finite(**values: float):
    for name, value in values.items():
        try:
            ok = math.isfinite(value)
        except TypeError:
            raise CoordinateError(f"{name} is not a number: {value!r}")
        if not ok:
            raise CoordinateError(f"{name} is not finite: {value}")


def _require_mercator_lat(lat: float, name: str = "lat"):
    if abs(lat) > MAX_MERCATOR_LAT:
        raise CoordinateError(
            f"{name} {lat} is outside the Web Mercator range (±{MAX_MERCATOR_LAT})"
        )


def meters_per_tile(origin_lat: float, zoom: int = DEFAULT_ZOOM) -> float:
    """Size of one map tile in meters at the given latitude"""
    return EARTH_CIRCUMFERENCE_M * math.cos(math.radians(origin_lat)) / (2 ** zoom)


def _lon_to_tile_x(lon: float, n: float) -> float:
    return (lon + 180.0) / 360.0 * n


def _lat_to_tile_y(lat: float, n: float) -> float:
    lat_rad = math.radians(lat)
    return (1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n


def _tile_x_to_lon(x_tile: float, n: float) -> float:
    return x_tile / n * 360.0 - 180.0


def _tile_y_to_lat(y_tile: float, n: float) -> float:
    return math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y_tile / n))))


def to_local(lat: float, lon: float, alt: float,
             origin: Sequence[float],
             zoom: int = DEFAULT_ZOOM) -> Tuple[float, float, float]:
    """
    Convert GPS coordinates to the local 3D frame

    Both points are projected to Web Mercator tile coordinates and the
    tile delta is scaled to meters at the origin latitude. Accurate for
    points within a few kilometers of the origin.

    Args:
        lat, lon: Position in degrees
        alt: Altitude in meters
        origin: (lat, lon) of the frame anchor
        zoom: Reference zoom level

    Returns:
        Tuple of (x, y, z) in meters: x east, y up, z south

    Raises:
        CoordinateError: On non-finite input or polar latitude
    """
    origin_lat, origin_lon = origin[0], origin[1]
    _require_finite(lat=lat, lon=lon, alt=alt,
                    origin_lat=origin_lat, origin_lon=origin_lon)
    _require_mercator_lat(lat)
    _require_mercator_lat(origin_lat, "origin_lat")

    n = 2.0 ** zoom
    tile_m = meters_per_tile(origin_lat, zoom)

    x = (_lon_to_tile_x(lon, n) - _lon_to_tile_x(origin_lon, n)) * tile_m
    z = (_lat_to_tile_y(lat, n) - _lat_to_tile_y(origin_lat, n)) * tile_m

    _require_finite(x=x, z=z)
    return x, alt, z


def to_geodetic(x: float, y: float, z: float,
                origin: Sequence[float],
                zoom: int = DEFAULT_ZOOM) -> Tuple[float, float, float]:
    """
    Convert local 3D frame coordinates back to GPS

    Args:
        x, y, z: Local position in meters (x east, y up, z south)
        origin: (lat, lon) of the frame anchor
        zoom: Reference zoom level

    Returns:
        Tuple of (lat, lon, alt) in degrees and meters

    Raises:
        CoordinateError: On non-finite input or a result beyond the
            Mercator latitude limit
    """
    origin_lat, origin_lon = origin[0], origin[1]
    _require_finite(x=x, y=y, z=z, origin_lat=origin_lat, origin_lon=origin_lon)
    _require_mercator_lat(origin_lat, "origin_lat")

    n = 2.0 ** zoom
    tile_m = meters_per_tile(origin_lat, zoom)

    x_tile = _lon_to_tile_x(origin_lon, n) + x / tile_m
    y_tile = _lat_to_tile_y(origin_lat, n) + z / tile_m

    try:
        lat = _tile_y_to_lat(y_tile, n)
    except OverflowError:
        raise CoordinateError(f"z {z} m is too far from the origin")
    lon = _tile_x_to_lon(x_tile, n)

    _require_finite(lat=lat, lon=lon)
    _require_mercator_lat(lat)
    return lat, lon, y


@dataclass(frozen=True)
class CoordinateFrame:
    """Local tangent-plane frame anchored at an origin"""
    origin_lat: float
    origin_lon: float
    zoom: int = DEFAULT_ZOOM

    @property
    def origin(self) -> Tuple[float, float]:
        return (self.origin_lat, self.origin_lon)

    @property
    def meters_per_tile(self) -> float:
        return meters_per_tile(self.origin_lat, self.zoom)

    def to_local(self, lat: float, lon: float, alt: float) -> Tuple[float, float, float]:
        return to_local(lat, lon, alt, self.origin, self.zoom)

    def to_geodetic(self, x: float, y: float, z: float) -> Tuple[float, float, float]:
        return to_geodetic(x, y, z, self.origin, self.zoom)


def tile_coords(lat: float, lon: float, zoom: int = DEFAULT_ZOOM) -> Tuple[int, int]:
    """Slippy-map tile index (x, y) containing the point"""
    _require_finite(lat=lat, lon=lon)
    _require_mercator_lat(lat)
    n = 2.0 ** zoom
    return int(math.floor(_lon_to_tile_x(lon, n))), int(math.floor(_lat_to_tile_y(lat, n)))


def haversine_distance(lat1: float, lon1: float,
                       lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points

    Args:
        lat1, lon1: First point in degrees
        lat2, lon2: Second point in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance_3d(lat1: float, lon1: float, alt1: float,
                lat2: float, lon2: float, alt2: float) -> float:
    """
    Straight-line distance combining haversine and altitude change

    Good enough at mission planning scales.
    """
    horizontal = haversine_distance(lat1, lon1, lat2, lon2)
    vertical = alt2 - alt1
    return math.sqrt(horizontal ** 2 + vertical ** 2)


def bearing(lat1: float, lon1: float,
            lat2: float, lon2: float) -> float:
    """
    Calculate initial bearing from point 1 to point 2

    Returns:
        Bearing in degrees (0-360, 0=North)
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    d_lon = math.radians(lon2 - lon1)

    x = math.sin(d_lon) * math.cos(lat2_rad)
    y = (math.cos(lat1_rad) * math.sin(lat2_rad) -
         math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(d_lon))

    bearing_deg = math.degrees(math.atan2(x, y))

    # Normalize to 0-360
    return (bearing_deg + 360) % 360
