"""
Mission management module

Provides the mission command model, validation, statistics, the QGC WPL
110 codec and the in-memory planning session.
"""

from .models import (
    CommandType,
    MissionCommand,
    Takeoff,
    Waypoint,
    Wait,
    Land,
    ReturnToHome,
    CirclePoint,
    SpeedChange,
    Mission,
    MissionFormatError,
    IndexOutOfRangeError,
    InvalidCommandError,
    command_from_dict,
)
from .validator import (
    ValidationErrorKind,
    ValidationResult,
    MissionValidationError,
    validate,
    ensure_valid,
)
from .statistics import MissionStats, compute_stats
from .codec import (
    MissionParseError,
    InvalidHeaderError,
    MalformedRecordError,
    InvalidCoordinateError,
    UnsupportedCommandError,
    ParsedWaypoint,
    ParsedWaypoints,
    encode,
    decode,
    decode_mission,
    export_mission,
)
from .broadcast import WaypointBroadcast, publish_mission_file
from .session import MissionSession

__all__ = [
    # Commands
    'CommandType',
    'MissionCommand',
    'Takeoff',
    'Waypoint',
    'Wait',
    'Land',
    'ReturnToHome',
    'CirclePoint',
    'SpeedChange',
    'command_from_dict',
    # Mission
    'Mission',
    'MissionFormatError',
    'IndexOutOfRangeError',
    'InvalidCommandError',
    # Validation
    'ValidationErrorKind',
    'ValidationResult',
    'MissionValidationError',
    'validate',
    'ensure_valid',
    # Statistics
    'MissionStats',
    'compute_stats',
    # Codec
    'MissionParseError',
    'InvalidHeaderError',
    'MalformedRecordError',
    'InvalidCoordinateError',
    'UnsupportedCommandError',
    'ParsedWaypoint',
    'ParsedWaypoints',
    'encode',
    'decode',
    'decode_mission',
    'export_mission',
    # Broadcast / session
    'WaypointBroadcast',
    'publish_mission_file',
    'MissionSession',
]
