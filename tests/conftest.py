"""
Pytest configuration and fixtures
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


ORIGIN = (18.52789, 73.85223)


@pytest.fixture
def origin():
    """Fixture for the launch point used across tests"""
    return ORIGIN


@pytest.fixture
def frame():
    """Fixture for a local frame anchored at the launch point"""
    from mission_planner.utils.geo import CoordinateFrame

    return CoordinateFrame(*ORIGIN)


@pytest.fixture
def mission_defaults():
    """Fixture for mission planning defaults"""
    from mission_planner.config import MissionConfig

    return MissionConfig(
        default_altitude_m=5.0,
        default_speed_ms=10.0,
        takeoff_speed_ms=2.0,
        landing_speed_ms=1.0,
    )


@pytest.fixture
def sample_mission():
    """Fixture for a flight-ready mission: takeoff, waypoint, land"""
    from mission_planner.mission import Mission, Takeoff, Waypoint, Land

    return Mission(
        commands=(
            Takeoff(lat=18.52789, lon=73.85223, alt=5.0),
            Waypoint(lat=18.52800, lon=73.85230, alt=5.0, speed=10.0),
            Land(),
        ),
        name="Test Mission",
    )


@pytest.fixture
def session(frame, mission_defaults):
    """Fixture for an empty planning session"""
    from mission_planner.mission import MissionSession

    return MissionSession(frame, mission_defaults, name="Test Mission")


@pytest.fixture
def planned_session(session):
    """Fixture for a session holding a takeoff, two waypoints and a landing"""
    session.add_takeoff(5.0)
    session.add_waypoint(18.52800, 73.85230, 5.0)
    session.add_waypoint(18.52850, 73.85300, 8.0)
    session.add_land()
    return session
