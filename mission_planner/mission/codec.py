"""
QGC WPL 110 mission file codec

Line 1 is the literal header, line 2 the home record, then one
tab-separated record per mission command:

    seq current frame command p1 p2 p3 p4 lat lon alt autocontinue
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from pymavlink.dialects.v20 import common as mavlink

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
from .statistics import DEFAULT_SPEED
from .validator import ensure_valid

logger = logging.getLogger(__name__)

HEADER = "QGC WPL 110"
FIELD_COUNT = 12

# MAVLink command codes
CMD_WAYPOINT = mavlink.MAV_CMD_NAV_WAYPOINT              # 16, also home
CMD_CIRCLE = mavlink.MAV_CMD_NAV_LOITER_TURNS            # 18
CMD_WAIT = mavlink.MAV_CMD_NAV_LOITER_TIME               # 19
CMD_RTH = mavlink.MAV_CMD_NAV_RETURN_TO_LAUNCH           # 20
CMD_LAND = mavlink.MAV_CMD_NAV_LAND                      # 21
CMD_TAKEOFF = mavlink.MAV_CMD_NAV_TAKEOFF                # 22
CMD_SPEED_CHANGE = mavlink.MAV_CMD_DO_CHANGE_SPEED       # 178

FRAME_HOME = mavlink.MAV_FRAME_GLOBAL                    # 0
FRAME_MISSION = mavlink.MAV_FRAME_GLOBAL_RELATIVE_ALT    # 3


class MissionParseError(Exception):
    """Raised when a mission file cannot be decoded"""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class InvalidHeaderError(MissionParseError):
    """First line is not the QGC WPL 110 header"""

    def __init__(self, found: str):
        super().__init__(f"expected header '{HEADER}', got '{found}'", 1)


class MalformedRecordError(MissionParseError):
    """Record with the wrong number of fields or a non-numeric field"""
    pass


class InvalidCoordinateError(MissionParseError):
    """lat/lon/alt not a finite number"""
    pass


class UnsupportedCommandError(MissionParseError):
    """Command code with no mission command counterpart"""

    def __init__(self, command: int, line_number: int):
        super().__init__(f"unsupported command {command}", line_number)
        self.command = command


def _fmt_param(value: float) -> str:
    return f"{value:.8f}"


def _fmt_alt(value: float) -> str:
    return f"{value:.6f}"


@dataclass(frozen=True)
class MissionRecord:
    """One line of a QGC WPL file"""
    seq: int
    current: int
    frame: int
    command: int
    param1: float = 0.0
    param2: float = 0.0
    param3: float = 0.0
    param4: float = 0.0
    lat: float = 0.0
    lon: float = 0.0
    alt: float = 0.0
    autocontinue: int = 1

    def to_line(self) -> str:
        return "\t".join([
            str(self.seq),
            str(self.current),
            str(self.frame),
            str(self.command),
            _fmt_param(self.param1),
            _fmt_param(self.param2),
            _fmt_param(self.param3),
            _fmt_param(self.param4),
            _fmt_param(self.lat),
            _fmt_param(self.lon),
            _fmt_alt(self.alt),
            str(self.autocontinue),
        ])

    @property
    def is_home(self) -> bool:
        return self.seq == 0 and self.current == 1

    @classmethod
    def parse(cls, line: str, line_number: int) -> 'MissionRecord':
        """
        Parse a record line

        Raises:
            MalformedRecordError: Wrong field count, non-numeric field or
                non-finite param
            InvalidCoordinateError: lat/lon/alt not finite numbers
        """
        fields = line.split()
        if len(fields) != FIELD_COUNT:
            raise MalformedRecordError(
                f"expected {FIELD_COUNT} fields, got {len(fields)}", line_number)

        try:
            seq, current, frame, command = (_parse_int(v) for v in fields[0:4])
            params = [float(v) for v in fields[4:8]]
            autocontinue = _parse_int(fields[11])
        except ValueError as e:
            raise MalformedRecordError(str(e), line_number)
        for position, value in enumerate(params, start=1):
            if not math.isfinite(value):
                raise MalformedRecordError(f"param{position} is not finite: '{value}'", line_number)

        coords = []
        for name, raw in zip(("lat", "lon", "alt"), fields[8:11]):
            try:
                value = float(raw)
            except ValueError:
                raise InvalidCoordinateError(f"{name} is not a number: '{raw}'", line_number)
            if not math.isfinite(value):
                raise InvalidCoordinateError(f"{name} is not finite: '{raw}'", line_number)
            coords.append(value)

        return cls(seq, current, frame, command, *params, *coords, autocontinue)


def _parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        number = float(value)
        if not number.is_integer():
            raise ValueError(f"expected an integer, got '{value}'")
        return int(number)


def parse_records(text: str) -> List[Tuple[int, MissionRecord]]:
    """
    Split a mission file into (line_number, record) pairs

    Blank lines are skipped. Nothing is returned unless the whole file
    parses.

    Raises:
        MissionParseError: On the first bad line
    """
    lines = text.splitlines()
    first = lines[0] if lines else ""
    if first != HEADER:
        raise InvalidHeaderError(first)

    records = []
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        records.append((line_number, MissionRecord.parse(line, line_number)))
    return records


# ==================== Encode ====================

def _record_for(command: MissionCommand, seq: int, speed: float,
                default_altitude: float) -> MissionRecord:
    if isinstance(command, Waypoint):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_WAYPOINT,
                             param1=speed, lat=command.lat, lon=command.lon, alt=command.alt)
    if isinstance(command, Takeoff):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_TAKEOFF,
                             lat=command.lat, lon=command.lon, alt=command.alt)
    if isinstance(command, Wait):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_WAIT, param1=command.duration)
    if isinstance(command, Land):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_LAND)
    if isinstance(command, ReturnToHome):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_RTH)
    if isinstance(command, SpeedChange):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_SPEED_CHANGE,
                             param1=command.speed, param2=command.speed)
    if isinstance(command, CirclePoint):
        return MissionRecord(seq, 0, FRAME_MISSION, CMD_CIRCLE,
                             param1=command.radius, param2=command.turns, param3=1,
                             lat=command.lat, lon=command.lon, alt=default_altitude)
    raise TypeError(f"Cannot encode {type(command).__name__}")


def encode_records(mission: Mission, origin: Sequence[float],
                   default_altitude: float,
                   default_speed: float = DEFAULT_SPEED) -> Iterator[MissionRecord]:
    """Home record followed by one record per command"""
    yield MissionRecord(0, 1, FRAME_HOME, CMD_WAYPOINT,
                        lat=origin[0], lon=origin[1], alt=default_altitude)

    speed = default_speed
    for index, command in enumerate(mission):
        if isinstance(command, SpeedChange):
            speed = command.speed
        yield _record_for(command, index + 1, speed, default_altitude)


def encode(mission: Mission, origin: Sequence[float],
           default_altitude: float,
           default_speed: float = DEFAULT_SPEED) -> str:
    """
    Encode a mission as QGC WPL 110 text

    Args:
        mission: Mission to encode (not validated here)
        origin: (lat, lon) written as the home record
        default_altitude: Home altitude and circle altitude (m)
        default_speed: Speed written to waypoints before any speed change

    Returns:
        File contents, newline terminated
    """
    lines = [HEADER]
    lines.extend(r.to_line() for r in encode_records(mission, origin,
                                                      default_altitude, default_speed))
    return "\n".join(lines) + "\n"


def export_mission(mission: Mission, origin: Sequence[float],
                   default_altitude: float,
                   default_speed: float = DEFAULT_SPEED) -> str:
    """
    Validate then encode

    Raises:
        MissionValidationError: If the mission isn't flight-ready
    """
    ensure_valid(mission)
    text = encode(mission, origin, default_altitude, default_speed)
    logger.info(f"Exported mission '{mission.name}' ({len(mission)} commands)")
    return text


# ==================== Decode ====================

@dataclass(frozen=True)
class ParsedWaypoint:
    """Positional record from an uploaded file"""
    seq: int
    lat: float
    lon: float
    alt: float
    command: int = CMD_WAYPOINT

    def to_dict(self) -> dict:
        return {'seq': self.seq, 'lat': self.lat, 'lng': self.lon, 'alt': self.alt}


@dataclass(frozen=True)
class ParsedWaypoints:
    """Decoded positional records plus the home record, if any"""
    home: Optional[ParsedWaypoint] = None
    waypoints: List[ParsedWaypoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.waypoints)

    def __iter__(self) -> Iterator[ParsedWaypoint]:
        return iter(self.waypoints)

    def to_list(self) -> List[dict]:
        return [wp.to_dict() for wp in self.waypoints]


def _split_home(records: List[Tuple[int, MissionRecord]]):
    if records and records[0][1].is_home:
        return records[0][1], records[1:], 1
    return None, records, 0


def decode(text: str) -> ParsedWaypoints:
    """
    Decode positional waypoints from QGC WPL 110 text

    Records at exactly (0, 0) are treated as non-positional and dropped,
    so a real waypoint on the equator at the prime meridian is lost.
    When the file has a home record, mission seqs are shifted back by one.

    Raises:
        MissionParseError: InvalidHeaderError, MalformedRecordError or
            InvalidCoordinateError with the failing line number
    """
    home_record, records, offset = _split_home(parse_records(text))

    home = None
    if home_record is not None:
        home = ParsedWaypoint(0, home_record.lat, home_record.lon,
                              home_record.alt, home_record.command)

    waypoints = [
        ParsedWaypoint(r.seq - offset, r.lat, r.lon, r.alt, r.command)
        for _, r in records
        if not (r.lat == 0 and r.lon == 0)
    ]

    logger.debug(f"Decoded {len(waypoints)} waypoints from {len(records)} records")
    return ParsedWaypoints(home, waypoints)


def _command_for(record: MissionRecord, line_number: int) -> MissionCommand:
    code = record.command
    if code == CMD_WAYPOINT:
        speed = record.param1 if record.param1 > 0 else None
        return Waypoint(record.lat, record.lon, record.alt, speed=speed)
    if code == CMD_TAKEOFF:
        return Takeoff(record.lat, record.lon, record.alt)
    if code == CMD_WAIT:
        return Wait(record.param1)
    if code == CMD_LAND:
        return Land()
    if code == CMD_RTH:
        return ReturnToHome()
    if code == CMD_SPEED_CHANGE:
        return SpeedChange(record.param2 or record.param1)
    if code == CMD_CIRCLE:
        return CirclePoint(record.lat, record.lon,
                           radius=record.param1, turns=int(record.param2))
    raise UnsupportedCommandError(code, line_number)


def decode_mission(text: str, name: str = "Imported Mission") -> Mission:
    """
    Import a full mission from QGC WPL 110 text

    All-or-nothing: any bad line aborts the import.

    Raises:
        MissionParseError: Bad header, record or coordinate, or a
            command code with no mission counterpart
    """
    _, records, _ = _split_home(parse_records(text))
    commands = [_command_for(record, line_number) for line_number, record in records]
    logger.info(f"Imported {len(commands)} commands")
    return Mission(commands=tuple(commands), name=name)
