"""
Mission planning session

Owns the Mission being edited in one planning session. Every change goes
through a Mission operation and replaces the held snapshot; the last
writer wins. Nothing is persisted.
"""

import logging
from typing import Any, Callable, Optional, Tuple

from ..config import MissionConfig
from ..utils.geo import CoordinateFrame
from .codec import decode_mission, export_mission
from .models import (
    CirclePoint,
    Land,
    Mission,
    MissionCommand,
    ReturnToHome,
    SpeedChange,
    Takeoff,
    Wait,
    Waypoint,
)
from .statistics import MissionStats, compute_stats
from .validator import ValidationResult, validate

logger = logging.getLogger(__name__)


class MissionSession:
    """Holds the current Mission plus the frame and defaults it's planned in"""

    def __init__(self, frame: CoordinateFrame,
                 defaults: Optional[MissionConfig] = None,
                 name: str = "Unnamed Mission"):
        """
        Args:
            frame: Local frame; its origin is the launch/home point
            defaults: Altitude, speed and preset values for new commands
            name: Mission name
        """
        self.frame = frame
        self.defaults = defaults or MissionConfig()
        self.default_speed = self.defaults.default_speed_ms
        self._mission = Mission(name=name)

    @property
    def mission(self) -> Mission:
        return self._mission

    def replace(self, mission: Mission) -> Mission:
        """Swap in a new snapshot"""
        self._mission = mission
        return mission

    def apply(self, operation: Callable[[Mission], Mission]) -> Mission:
        """Run a Mission operation against the current snapshot and keep the result"""
        return self.replace(operation(self._mission))

    # ==================== Model operations ====================

    def append(self, command: MissionCommand) -> Mission:
        mission = self.apply(lambda m: m.append(command))
        logger.debug(f"Appended {command.command_type.value} at {len(mission) - 1}")
        return mission

    def remove_at(self, index: int) -> Mission:
        return self.apply(lambda m: m.remove_at(index))

    def move_to(self, from_index: int, to_index: int) -> Mission:
        return self.apply(lambda m: m.move_to(from_index, to_index))

    def update_field(self, index: int, **patch: Any) -> Mission:
        return self.apply(lambda m: m.update_field(index, **patch))

    def set_all_waypoint_altitudes(self, alt: float) -> Mission:
        return self.apply(lambda m: m.set_all_waypoint_altitudes(alt))

    def clear(self) -> Mission:
        self.default_speed = self.defaults.default_speed_ms
        return self.apply(lambda m: m.clear())

    # ==================== Command helpers ====================

    def add_takeoff(self, alt: Optional[float] = None) -> Mission:
        """Takeoff from the home point"""
        if alt is None:
            alt = self.defaults.default_altitude_m
        return self.append(Takeoff(self.frame.origin_lat, self.frame.origin_lon, alt))

    def add_waypoint(self, lat: float, lon: float, alt: Optional[float] = None,
                     hover_time: Optional[float] = None) -> Mission:
        """Waypoint at a map click, at the session's altitude and speed"""
        if alt is None:
            alt = self.defaults.default_altitude_m
        return self.append(Waypoint(lat, lon, alt, speed=self.default_speed,
                                    hover_time=hover_time))

    def add_wait(self, duration: Optional[float] = None) -> Mission:
        if duration is None:
            duration = self.defaults.wait_time_s
        return self.append(Wait(duration))

    def add_land(self) -> Mission:
        return self.append(Land())

    def add_rth(self) -> Mission:
        return self.append(ReturnToHome())

    def add_circle(self, lat: Optional[float] = None, lon: Optional[float] = None,
                   radius: Optional[float] = None, turns: Optional[int] = None) -> Mission:
        """Circle around a point, the home point if none is given"""
        return self.append(CirclePoint(
            self.frame.origin_lat if lat is None else lat,
            self.frame.origin_lon if lon is None else lon,
            radius=self.defaults.circle_radius_m if radius is None else radius,
            turns=self.defaults.circle_turns if turns is None else turns,
        ))

    def add_speed_change(self, speed: float) -> Mission:
        """Speed change; new waypoints are created with this speed"""
        mission = self.append(SpeedChange(speed))
        self.default_speed = speed
        return mission

    # ==================== Derived values ====================

    def stats(self) -> MissionStats:
        return compute_stats(
            self._mission,
            self.frame.origin,
            default_speed=self.defaults.default_speed_ms,
            takeoff_speed=self.defaults.takeoff_speed_ms,
            landing_speed=self.defaults.landing_speed_ms,
        )

    def validate(self) -> ValidationResult:
        return validate(self._mission)

    def local_position(self, index: int) -> Tuple[float, float, float]:
        """
        Local-frame position of a positional command

        CirclePoint has no altitude of its own and sits at the default
        altitude.
        """
        command = self._mission[index]
        if not command.is_positional:
            raise ValueError(f"Command {index} ({command.command_type.value}) has no position")
        alt = getattr(command, 'alt', self.defaults.default_altitude_m)
        return self.frame.to_local(command.lat, command.lon, alt)

    # ==================== Files ====================

    def export(self) -> str:
        """
        QGC WPL 110 text for the current mission

        Raises:
            MissionValidationError: If the mission isn't flight-ready
        """
        return export_mission(
            self._mission,
            self.frame.origin,
            self.defaults.default_altitude_m,
            self.defaults.default_speed_ms,
        )

    def import_file(self, text: str) -> Mission:
        """
        Replace the mission with one decoded from a file

        The current mission is untouched if the file fails to parse.

        Raises:
            MissionParseError: If the file is invalid
        """
        imported = decode_mission(text, name=self._mission.name)
        logger.info(f"Replacing mission with {len(imported)} imported commands")
        return self.replace(imported)
