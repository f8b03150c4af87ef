"""
Utility modules
"""

from .geo import (
    CoordinateError,
    CoordinateFrame,
    to_local,
    to_geodetic,
    haversine_distance,
    distance_3d,
)
from .logger import setup_logging

__all__ = [
    'CoordinateError',
    'CoordinateFrame',
    'to_local',
    'to_geodetic',
    'haversine_distance',
    'distance_3d',
    'setup_logging',
]
