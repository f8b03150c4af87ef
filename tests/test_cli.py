"""
Tests for the mission-planner CLI
"""

import json
import pytest

from mission_planner.cli.main import main
from mission_planner.mission.codec import HEADER


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from replacing pytest's log handlers"""
    monkeypatch.setattr("mission_planner.cli.main.setup_logging", lambda **kwargs: None)


@pytest.fixture
def mission_json(tmp_path, sample_mission):
    """Fixture for a mission JSON file on disk"""
    path = tmp_path / "survey.json"
    path.write_text(json.dumps(sample_mission.to_dict()))
    return path


@pytest.fixture
def config_file(tmp_path):
    """Fixture for a config anchored at the sample mission's launch point"""
    path = tmp_path / "planner.yaml"
    path.write_text("frame:\n  origin_lat: 18.52789\n  origin_lon: 73.85223\n")
    return str(path)


class TestCli:
    """Test CLI commands"""

    def test_no_command(self, capsys):
        """Test help is shown without a command"""
        assert main([]) == 0
        assert "mission-planner" in capsys.readouterr().out

    def test_export_stdout(self, mission_json, config_file, capsys):
        """Test export writes the file to stdout"""
        assert main(["-c", config_file, "export", str(mission_json)]) == 0

        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0] == HEADER
        assert lines[1].split("\t")[8] == "18.52789000"

    def test_export_file(self, mission_json, config_file, tmp_path):
        """Test export writes to -o"""
        output = tmp_path / "survey.waypoints"
        assert main(["-c", config_file, "export", str(mission_json), "-o", str(output)]) == 0
        assert output.read_text().startswith(HEADER)

    def test_export_invalid(self, tmp_path, config_file, capsys):
        """Test an invalid mission fails to export"""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"commands": [{"type": "land"}]}))

        assert main(["-c", config_file, "export", str(path)]) == 1
        assert "Mission must start with takeoff" in capsys.readouterr().out

    def test_export_missing_file(self, tmp_path, config_file):
        assert main(["-c", config_file, "export", str(tmp_path / "nope.json")]) == 1

    def test_export_bad_json(self, tmp_path, config_file, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        assert main(["-c", config_file, "export", str(path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().out

    def test_export_non_finite_coordinate(self, tmp_path, config_file, capsys):
        """Test a NaN coordinate is reported and nothing is written"""
        path = tmp_path / "nan.json"
        path.write_text(json.dumps({"commands": [
            {"type": "takeoff", "lat": 18.52789, "lon": 73.85223, "alt": 5},
            {"type": "waypoint", "lat": "nan", "lon": 73.8, "alt": 5},
            {"type": "land"},
        ]}))
        output = tmp_path / "nan.waypoints"

        assert main(["-c", config_file, "export", str(path), "-o", str(output)]) == 1
        assert "lat must be a finite number" in capsys.readouterr().out
        assert not output.exists()

    def test_inspect(self, mission_json, config_file, tmp_path, capsys):
        """Test inspect lists positional waypoints"""
        output = tmp_path / "survey.waypoints"
        main(["-c", config_file, "export", str(mission_json), "-o", str(output)])
        capsys.readouterr()

        assert main(["-c", config_file, "inspect", str(output)]) == 0
        out = capsys.readouterr().out
        assert "Home: 18.5278900, 73.8522300" in out
        assert "18.5280000" in out

    def test_inspect_headings(self, tmp_path, config_file, capsys):
        """Test each row shows the heading of the leg flown into it"""
        path = tmp_path / "square.waypoints"
        path.write_text("\n".join([
            HEADER,
            "0\t1\t0\t16\t0\t0\t0\t0\t10.0\t10.0\t5\t1",
            "1\t0\t3\t16\t0\t0\t0\t0\t10.01\t10.0\t5\t1",
            "2\t0\t3\t16\t0\t0\t0\t0\t10.01\t10.01\t5\t1",
        ]) + "\n")

        assert main(["-c", config_file, "inspect", str(path)]) == 0
        rows = [line.split() for line in capsys.readouterr().out.splitlines()
                if line.split() and line.split()[0].isdigit()]

        assert [row[-1] for row in rows] == ["0", "90"]

    def test_inspect_bad_file(self, tmp_path, config_file, capsys):
        path = tmp_path / "bad.waypoints"
        path.write_text("QGC WPL 120\n")

        assert main(["-c", config_file, "inspect", str(path)]) == 1
        assert "QGC WPL 110" in capsys.readouterr().out

    def test_stats(self, mission_json, config_file, capsys):
        """Test stats prints totals"""
        assert main(["-c", config_file, "stats", str(mission_json)]) == 0
        out = capsys.readouterr().out
        assert "Distance:" in out
        assert "Waypoints: 1" in out

    def test_validate_ok(self, mission_json, config_file, capsys):
        assert main(["-c", config_file, "validate", str(mission_json)]) == 0
        assert "is valid" in capsys.readouterr().out

    def test_validate_waypoints_file(self, tmp_path, config_file, capsys):
        """Test .waypoints files are imported before validating"""
        path = tmp_path / "open.waypoints"
        path.write_text(HEADER + "\n0\t0\t3\t22\t0\t0\t0\t0\t18.5\t73.8\t5\t1\n")

        assert main(["-c", config_file, "validate", str(path)]) == 1
        assert "Mission must end with land or return to home" in capsys.readouterr().out
