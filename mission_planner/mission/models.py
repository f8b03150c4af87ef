"""
Mission models

Defines the mission command variants and the immutable, index-addressed
Mission. Every Mission operation returns a new Mission with `seq`
re-derived so that mission[i].seq == i always holds.
"""

import dataclasses
import logging
import math
import typing
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type

from ..utils.geo import CoordinateError

logger = logging.getLogger(__name__)


class MissionFormatError(Exception):
    """Raised when a mission document cannot be parsed"""
    pass


class InvalidCommandError(ValueError):
    """Raised when a command carries a value no mission can fly with"""
    pass


class IndexOutOfRangeError(IndexError):
    """Raised when a mission operation addresses a command that doesn't exist"""

    def __init__(self, index: int, length: int):
        super().__init__(f"Command index {index} out of range for mission of length {length}")
        self.index = index
        self.length = length


class CommandType(Enum):
    """Available mission command types"""
    TAKEOFF = "takeoff"
    WAYPOINT = "waypoint"
    WAIT = "wait"
    LAND = "land"
    RTH = "rth"
    CIRCLE = "circle"
    SPEED_CHANGE = "speed_change"


# Fields that carry a position and must stay finite
POSITION_FIELDS = ('lat', 'lon', 'alt')


def _coerce(hint: Any, value: Any) -> Any:
    """Convert a JSON value to the field's declared type"""
    if value is None:
        return None
    if hint is int:
        return int(value)
    if hint is float or hint == Optional[float]:
        return float(value)
    return value


class MissionCommand(ABC):
    """
    Base class for all mission commands

    Subclasses are frozen dataclasses; `seq` is always their last field.
    """

    seq: int

    @property
    @abstractmethod
    def command_type(self) -> CommandType:
        """Return the command type"""
        pass

    @property
    def is_positional(self) -> bool:
        """True if the command places the vehicle at a lat/lon"""
        return hasattr(self, 'lat') and hasattr(self, 'lon')

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        """Patchable field names (everything except seq)"""
        return tuple(f.name for f in dataclasses.fields(cls) if f.name != 'seq')

    def with_seq(self, seq: int) -> 'MissionCommand':
        if self.seq == seq:
            return self
        return dataclasses.replace(self, seq=seq)

    def ensure_finite(self) -> 'MissionCommand':
        """
        Raises:
            CoordinateError: If lat/lon/alt is present and not a finite number
        """
        for name in POSITION_FIELDS:
            value = getattr(self, name, 0.0)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise CoordinateError(f"{name} must be a finite number, got {value!r}")
        return self

    def ensure_flyable(self) -> 'MissionCommand':
        """
        Check every numeric field can be flown and estimated

        Raises:
            CoordinateError: If lat/lon/alt is not a finite number
            InvalidCommandError: If another numeric field is not finite
        """
        self.ensure_finite()
        for name in self.field_names():
            value = getattr(self, name)
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidCommandError(
                    f"{self.command_type.value}: {name} must be a finite number, got {value!r}")
        return self

    def patched(self, patch: Dict[str, Any]) -> 'MissionCommand':
        """
        Return a copy with the patch merged in

        Keys that aren't fields of this variant are ignored, so patching
        the altitude of a Land command is a no-op.

        Raises:
            CoordinateError: If a position field is not a finite number
            InvalidCommandError: If the patched command can't be flown
        """
        allowed = self.field_names()
        changes = {k: v for k, v in patch.items() if k in allowed}
        ignored = set(patch) - set(changes)
        if ignored:
            logger.debug(f"{self.command_type.value}: ignoring fields {sorted(ignored)}")

        if not changes:
            return self
        return dataclasses.replace(self, **changes).ensure_flyable()

    def to_dict(self) -> Dict[str, Any]:
        """Convert command to dictionary"""
        d: Dict[str, Any] = {"type": self.command_type.value}
        for name in self.field_names():
            value = getattr(self, name)
            if value is not None:
                d[name] = value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MissionCommand':
        """Create command from dictionary"""
        hints = typing.get_type_hints(cls)
        kwargs: Dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name == 'seq':
                continue
            if f.name in data:
                kwargs[f.name] = _coerce(hints.get(f.name), data[f.name])
            elif f.default is dataclasses.MISSING:
                raise KeyError(f.name)
        return cls(**kwargs)

    def check(self) -> List[str]:
        """
        Check command parameters.

        Returns:
            List of warning messages (empty if fine)
        """
        return []


def _check_position(name: str, cmd: Any) -> List[str]:
    errors = []
    if not (-90 <= cmd.lat <= 90):
        errors.append(f"{name}: invalid latitude {cmd.lat}")
    if not (-180 <= cmd.lon <= 180):
        errors.append(f"{name}: invalid longitude {cmd.lon}")
    if getattr(cmd, 'alt', 0) < 0:
        errors.append(f"{name}: altitude cannot be negative")
    return errors


@dataclass(frozen=True)
class Takeoff(MissionCommand):
    """Take off to altitude above the launch point"""
    lat: float
    lon: float
    alt: float  # meters, relative to ground
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.TAKEOFF

    def check(self) -> List[str]:
        errors = _check_position("takeoff", self)
        if self.alt <= 0:
            errors.append("takeoff: altitude must be positive")
        return errors


@dataclass(frozen=True)
class Waypoint(MissionCommand):
    """Fly through a 3D point"""
    lat: float
    lon: float
    alt: float
    speed: Optional[float] = None       # m/s, informational
    hover_time: Optional[float] = None  # seconds spent at the point
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.WAYPOINT

    def check(self) -> List[str]:
        errors = _check_position("waypoint", self)
        if self.speed is not None and self.speed <= 0:
            errors.append("waypoint: speed must be positive")
        if self.hover_time is not None and self.hover_time < 0:
            errors.append("waypoint: hover time cannot be negative")
        return errors


@dataclass(frozen=True)
class Wait(MissionCommand):
    """Hold position for a duration"""
    duration: float  # seconds
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.WAIT

    def check(self) -> List[str]:
        if self.duration <= 0:
            return ["wait: duration must be positive"]
        return []


@dataclass(frozen=True)
class Land(MissionCommand):
    """Land at current position"""
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.LAND


@dataclass(frozen=True)
class ReturnToHome(MissionCommand):
    """Return to launch point and land"""
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.RTH


@dataclass(frozen=True)
class CirclePoint(MissionCommand):
    """Circle around a point"""
    lat: float
    lon: float
    radius: float = 10.0  # meters
    turns: int = 1
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.CIRCLE

    def check(self) -> List[str]:
        errors = _check_position("circle", self)
        if self.radius <= 0:
            errors.append("circle: radius must be positive")
        if self.turns < 1:
            errors.append("circle: turns must be at least 1")
        return errors


@dataclass(frozen=True)
class SpeedChange(MissionCommand):
    """Change cruise speed for the following waypoints"""
    speed: float  # m/s
    seq: int = 0

    @property
    def command_type(self) -> CommandType:
        return CommandType.SPEED_CHANGE

    def check(self) -> List[str]:
        if self.speed <= 0:
            return ["speed_change: speed must be positive"]
        return []

    def ensure_flyable(self) -> 'SpeedChange':
        super().ensure_flyable()
        # Later legs are timed at this speed
        if self.speed <= 0:
            raise InvalidCommandError(f"speed_change: speed must be positive, got {self.speed}")
        return self


# Command type mapping
COMMAND_CLASSES: Dict[str, Type[MissionCommand]] = {
    "takeoff": Takeoff,
    "waypoint": Waypoint,
    "wait": Wait,
    "land": Land,
    "rth": ReturnToHome,
    "circle": CirclePoint,
    "speed_change": SpeedChange,
}


def command_from_dict(data: Dict[str, Any], index: int = 0) -> MissionCommand:
    """
    Create any command from its dictionary form

    Raises:
        MissionFormatError: Unknown type, missing/invalid field, or a
            value the command can't be flown with (non-finite, zero speed)
    """
    command_type = data.get("type")
    if command_type not in COMMAND_CLASSES:
        raise MissionFormatError(f"Command {index}: unknown type '{command_type}'")

    command_cls = COMMAND_CLASSES[command_type]
    try:
        return command_cls.from_dict(data).ensure_flyable().with_seq(index)
    except KeyError as e:
        raise MissionFormatError(f"Command {index} ({command_type}): missing required field {e}")
    except (TypeError, ValueError) as e:
        raise MissionFormatError(f"Command {index} ({command_type}): {e}")


@dataclass(frozen=True)
class Mission:
    """
    Ordered sequence of mission commands

    Immutable: every operation returns a new Mission. Construction
    re-sequences the commands so mission[i].seq == i.
    """
    commands: Tuple[MissionCommand, ...] = ()
    name: str = "Unnamed Mission"
    version: str = "1.0"

    def __post_init__(self):
        resequenced = tuple(cmd.with_seq(i) for i, cmd in enumerate(self.commands))
        object.__setattr__(self, 'commands', resequenced)

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[MissionCommand]:
        return iter(self.commands)

    def __getitem__(self, index: int) -> MissionCommand:
        return self.commands[self._check_index(index)]

    def _check_index(self, index: int) -> int:
        if not isinstance(index, int) or not (0 <= index < len(self.commands)):
            raise IndexOutOfRangeError(index, len(self.commands))
        return index

    def _with_commands(self, commands: Sequence[MissionCommand]) -> 'Mission':
        return dataclasses.replace(self, commands=tuple(commands))

    # ==================== Operations ====================

    def append(self, command: MissionCommand) -> 'Mission':
        """
        Append a command; it gets seq = len(mission)

        Raises:
            CoordinateError: Non-finite lat/lon/alt
            InvalidCommandError: Other non-finite value, or a speed change
                that isn't positive
        """
        command.ensure_flyable()
        return self._with_commands(self.commands + (command.with_seq(len(self.commands)),))

    def remove_at(self, index: int) -> 'Mission':
        """Remove the command at index and re-sequence"""
        self._check_index(index)
        return self._with_commands(self.commands[:index] + self.commands[index + 1:])

    def move_to(self, from_index: int, to_index: int) -> 'Mission':
        """Move a command to a new position (drag-and-drop reorder)"""
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return self

        commands = list(self.commands)
        moved = commands.pop(from_index)
        commands.insert(to_index, moved)
        return self._with_commands(commands)

    def update_field(self, index: int, **patch: Any) -> 'Mission':
        """
        Merge a partial update into the command at index

        Fields the command's variant doesn't have are ignored.

        Raises:
            IndexOutOfRangeError: Bad index
            CoordinateError: Non-finite lat/lon/alt in the patch
        """
        self._check_index(index)
        patch.pop('seq', None)
        current = self.commands[index]
        updated = current.patched(patch)
        if updated is current:
            return self

        commands = list(self.commands)
        commands[index] = updated
        return self._with_commands(commands)

    def set_all_waypoint_altitudes(self, alt: float) -> 'Mission':
        """Replace the altitude of every Waypoint, leaving other commands"""
        if not isinstance(alt, (int, float)) or not math.isfinite(alt):
            raise CoordinateError(f"alt must be a finite number, got {alt!r}")
        return self._with_commands(
            cmd.patched({'alt': alt}) if isinstance(cmd, Waypoint) else cmd
            for cmd in self.commands
        )

    def clear(self) -> 'Mission':
        return self._with_commands(())

    # ==================== Queries ====================

    def waypoints(self) -> List[Waypoint]:
        """Waypoint commands in order"""
        return [cmd for cmd in self.commands if isinstance(cmd, Waypoint)]

    def positional(self) -> List[MissionCommand]:
        """Commands that carry a lat/lon"""
        return [cmd for cmd in self.commands if cmd.is_positional]

    @property
    def waypoint_count(self) -> int:
        return len(self.waypoints())

    # ==================== Serialization ====================

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Mission':
        """
        Create mission from dictionary (JSON data)

        Raises:
            MissionFormatError: If a command is invalid
        """
        commands_data = data.get("commands", [])
        if not isinstance(commands_data, list):
            raise MissionFormatError("'commands' must be a list")

        commands = [command_from_dict(item, i) for i, item in enumerate(commands_data)]
        return cls(
            commands=tuple(commands),
            name=data.get("name", "Unnamed Mission"),
            version=data.get("version", "1.0"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert mission to dictionary (for JSON serialization)"""
        return {
            "version": self.version,
            "name": self.name,
            "commands": [cmd.to_dict() for cmd in self.commands],
        }

    def get_summary(self) -> Dict[str, Any]:
        """Get mission summary for API responses"""
        return {
            "name": self.name,
            "version": self.version,
            "command_count": len(self),
            "waypoint_count": self.waypoint_count,
        }
