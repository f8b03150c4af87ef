"""
Mission statistics

Estimates total distance and flight time by simulating the command
sequence. CirclePoint and ReturnToHome are not modeled and contribute
nothing.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..utils.geo import distance_3d
from .models import (
    Land,
    Mission,
    SpeedChange,
    Takeoff,
    Wait,
    Waypoint,
)

DEFAULT_SPEED = 10.0   # m/s
TAKEOFF_SPEED = 2.0    # m/s climb
LANDING_SPEED = 1.0    # m/s descent


def _duration(length: float, rate: float) -> float:
    """Seconds to cover length at rate; a stopped rate adds no time"""
    if rate <= 0:
        return 0.0
    return length / rate


@dataclass(frozen=True)
class MissionStats:
    """Distance (m) and time (s) totals, unrounded"""
    distance: float = 0.0
    time: float = 0.0

    def rounded(self) -> 'MissionStats':
        """Display values, 2 decimal places"""
        return MissionStats(round(self.distance, 2), round(self.time, 2))

    def to_dict(self) -> dict:
        shown = self.rounded()
        return {'distance_m': shown.distance, 'time_s': shown.time}


def compute_stats(mission: Mission,
                  origin: Sequence[float],
                  default_speed: float = DEFAULT_SPEED,
                  takeoff_speed: float = TAKEOFF_SPEED,
                  landing_speed: float = LANDING_SPEED) -> MissionStats:
    """
    Simulate the mission to estimate distance and time

    Args:
        mission: Mission snapshot
        origin: (lat, lon) of the launch point
        default_speed: Cruise speed before any speed change (m/s)
        takeoff_speed: Climb rate (m/s)
        landing_speed: Descent rate (m/s)

    Returns:
        Unrounded MissionStats
    """
    distance = 0.0
    time = 0.0
    current_alt = 0.0
    current_speed = default_speed
    previous: Optional[Tuple[float, float, float]] = None

    for cmd in mission:
        if isinstance(cmd, SpeedChange):
            current_speed = cmd.speed

        elif isinstance(cmd, Takeoff):
            current_alt = cmd.alt
            time += _duration(current_alt, takeoff_speed)
            distance += current_alt
            # Climb happens over the launch point
            previous = (origin[0], origin[1], current_alt)

        elif isinstance(cmd, Waypoint):
            if previous is None:
                continue
            leg = distance_3d(previous[0], previous[1], previous[2],
                              cmd.lat, cmd.lon, cmd.alt)
            distance += leg
            time += _duration(leg, current_speed)
            if cmd.hover_time:
                time += cmd.hover_time
            previous = (cmd.lat, cmd.lon, cmd.alt)

        elif isinstance(cmd, Wait):
            time += cmd.duration

        elif isinstance(cmd, Land):
            distance += current_alt
            time += _duration(current_alt, landing_speed)

    return MissionStats(distance, time)
