#!/usr/bin/env python3
"""
Mission Planner CLI

Offline tools for mission files: export JSON missions to QGC WPL 110,
inspect waypoint files, and print statistics and validation results.
"""

import argparse
import json
import sys
from pathlib import Path

from ..config import Config
from ..mission import (
    Mission,
    MissionFormatError,
    MissionParseError,
    MissionValidationError,
    compute_stats,
    decode,
    decode_mission,
    export_mission,
    validate,
)
from ..utils.geo import bearing
from ..utils.logger import setup_logging


# ANSI colors
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'


def color(text: str, c: str) -> str:
    """Apply color to text"""
    return f"{c}{text}{Colors.RESET}"


def print_error(msg: str):
    """Print error message"""
    print(color(f"Error: {msg}", Colors.RED))


def print_success(msg: str):
    """Print success message"""
    print(color(msg, Colors.GREEN))


def print_warning(msg: str):
    """Print warning message"""
    print(color(msg, Colors.YELLOW))


def load_mission(path: str) -> Mission:
    """
    Load a mission from a JSON document or a .waypoints file

    Raises:
        FileNotFoundError, MissionFormatError, MissionParseError
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")

    if file_path.suffix in ('.waypoints', '.txt'):
        return decode_mission(text, name=file_path.stem)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MissionFormatError(f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        raise MissionFormatError("Mission document must be an object")
    return Mission.from_dict(data)


# ==================== Commands ====================

def cmd_export(config: Config, args) -> int:
    """Export a JSON mission as QGC WPL 110"""
    try:
        mission = load_mission(args.file)
        text = export_mission(
            mission,
            (config.frame.origin_lat, config.frame.origin_lon),
            config.mission.default_altitude_m,
            config.mission.default_speed_ms,
        )
    except FileNotFoundError as e:
        print_error(str(e))
        return 1
    except (MissionFormatError, MissionParseError) as e:
        print_error(str(e))
        return 1
    except MissionValidationError as e:
        print_error(f"Mission is not flight-ready: {e}")
        return 1

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print_success(f"Mission '{mission.name}' exported to {args.output} ({len(mission)} commands)")
    else:
        sys.stdout.write(text)
    return 0


def cmd_inspect(config: Config, args) -> int:
    """List the positional waypoints of a QGC WPL file"""
    try:
        parsed = decode(Path(args.file).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        print_error(str(e))
        return 1
    except MissionParseError as e:
        print_error(str(e))
        return 1

    print()
    print(color(f"=== {args.file} ===", Colors.BOLD))
    if parsed.home is not None:
        print(f"Home: {parsed.home.lat:.7f}, {parsed.home.lon:.7f} ({parsed.home.alt:.1f} m)")
    print()

    if not len(parsed):
        print("No positional waypoints.")
        return 0

    print(f"{'Seq':<6} {'Cmd':<6} {'Lat':<14} {'Lon':<14} {'Alt (m)':<8} {'Heading':<8}")
    print("-" * 61)
    previous = parsed.home
    for wp in parsed:
        # Heading of the leg flown into this point
        heading = "-"
        if previous is not None:
            heading = f"{bearing(previous.lat, previous.lon, wp.lat, wp.lon):.0f}"
        print(f"{wp.seq:<6} {wp.command:<6} {wp.lat:<14.7f} {wp.lon:<14.7f} {wp.alt:<8.1f} {heading:<8}")
        previous = wp
    print()
    return 0


def cmd_stats(config: Config, args) -> int:
    """Print estimated distance and flight time"""
    try:
        mission = load_mission(args.file)
    except FileNotFoundError as e:
        print_error(str(e))
        return 1
    except (MissionFormatError, MissionParseError) as e:
        print_error(str(e))
        return 1

    stats = compute_stats(
        mission,
        (config.frame.origin_lat, config.frame.origin_lon),
        default_speed=config.mission.default_speed_ms,
        takeoff_speed=config.mission.takeoff_speed_ms,
        landing_speed=config.mission.landing_speed_ms,
    ).rounded()

    print()
    print(color(f"=== {mission.name} ===", Colors.BOLD))
    print(f"  Commands:  {len(mission)}")
    print(f"  Waypoints: {mission.waypoint_count}")
    print(f"  Distance:  {stats.distance:.2f} m")
    print(f"  Time:      {stats.time:.2f} s")
    print()
    return 0


def cmd_validate(config: Config, args) -> int:
    """Check that a mission is flight-ready"""
    try:
        mission = load_mission(args.file)
    except FileNotFoundError as e:
        print_error(str(e))
        return 1
    except (MissionFormatError, MissionParseError) as e:
        print_error(str(e))
        return 1

    result = validate(mission)
    for warning in result.warnings:
        print_warning(warning)

    if result.ok:
        print_success(f"Mission '{mission.name}' is valid ({len(mission)} commands)")
        return 0

    print_error(result.message)
    return 1


# ==================== Main ====================

def main(argv=None):
    """Main entry point for mission-planner CLI"""
    parser = argparse.ArgumentParser(
        prog='mission-planner',
        description='Drone Mission Planner CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mission-planner export survey.json -o survey.waypoints
  mission-planner inspect survey.waypoints
  mission-planner stats survey.json
  mission-planner validate survey.waypoints
"""
    )

    parser.add_argument(
        '-c', '--config',
        default=None,
        help='Path to configuration file (YAML)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    # export
    p = subparsers.add_parser('export', help='Export a mission as QGC WPL 110')
    p.add_argument('file', help='Mission JSON file path')
    p.add_argument('-o', '--output', help='Output file (default: stdout)')

    # inspect
    p = subparsers.add_parser('inspect', help='List waypoints of a QGC WPL file')
    p.add_argument('file', help='Mission .waypoints file path')

    # stats
    p = subparsers.add_parser('stats', help='Estimate distance and flight time')
    p.add_argument('file', help='Mission JSON or .waypoints file path')

    # validate
    p = subparsers.add_parser('validate', help='Check that a mission is flight-ready')
    p.add_argument('file', help='Mission JSON or .waypoints file path')

    args = parser.parse_args(argv)

    # No command - show help
    if not args.command:
        parser.print_help()
        return 0

    config = Config.load(args.config)
    setup_logging(level="DEBUG" if args.verbose else "WARNING")

    commands = {
        'export': cmd_export,
        'inspect': cmd_inspect,
        'stats': cmd_stats,
        'validate': cmd_validate,
    }
    return commands[args.command](config, args)


if __name__ == '__main__':
    sys.exit(main())
