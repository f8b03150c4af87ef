"""
Tests for the QGC WPL 110 mission file codec
"""

import pytest

from mission_planner.mission import (
    CirclePoint,
    InvalidCoordinateError,
    InvalidHeaderError,
    Land,
    MalformedRecordError,
    Mission,
    MissionParseError,
    MissionValidationError,
    ReturnToHome,
    SpeedChange,
    Takeoff,
    UnsupportedCommandError,
    Wait,
    Waypoint,
    decode,
    decode_mission,
    encode,
    export_mission,
)
from mission_planner.mission.codec import HEADER, MissionRecord, parse_records


ORIGIN = (18.52789, 73.85223)


def fields_of(line):
    return line.split("\t")


def record_line(*values):
    return "\t".join(str(v) for v in values)


class TestEncode:
    """Test writing QGC WPL 110 text"""

    def test_concrete_scenario(self, sample_mission):
        """Test home, takeoff, waypoint and land records"""
        lines = encode(sample_mission, ORIGIN, 5.0).splitlines()

        assert lines[0] == HEADER
        assert len(lines) == 5

        home = fields_of(lines[1])
        assert home[3] == "16"
        assert home[:3] == ["0", "1", "0"]

        takeoff = fields_of(lines[2])
        assert takeoff[3] == "22"
        assert float(takeoff[8]) == 18.52789
        assert float(takeoff[9]) == 73.85223
        assert float(takeoff[10]) == 5.0

        waypoint = fields_of(lines[3])
        assert waypoint[3] == "16"
        assert float(waypoint[8]) == 18.528
        assert float(waypoint[9]) == 73.8523
        assert float(waypoint[10]) == 5.0

        land = fields_of(lines[-1])
        assert land[3] == "21"
        assert [float(v) for v in land[8:11]] == [0.0, 0.0, 0.0]

    def test_record_layout(self, sample_mission):
        """Test twelve tab-separated fields with fixed precision"""
        lines = encode(sample_mission, ORIGIN, 5.0).splitlines()

        assert lines[1] == record_line(
            0, 1, 0, 16, "0.00000000", "0.00000000", "0.00000000", "0.00000000",
            "18.52789000", "73.85223000", "5.000000", 1)
        assert lines[3] == record_line(
            2, 0, 3, 16, "10.00000000", "0.00000000", "0.00000000", "0.00000000",
            "18.52800000", "73.85230000", "5.000000", 1)

    def test_newline_terminated(self, sample_mission):
        """Test the file ends with a newline"""
        assert encode(sample_mission, ORIGIN, 5.0).endswith("\n")

    def test_empty_mission_has_home_only(self):
        """Test encode doesn't validate"""
        lines = encode(Mission(), ORIGIN, 5.0).splitlines()
        assert len(lines) == 2
        assert fields_of(lines[1])[3] == "16"

    def test_speed_accumulator(self):
        """Test waypoints after a speed change carry the new speed"""
        mission = Mission(commands=(
            Takeoff(*ORIGIN, 5.0),
            Waypoint(18.528, 73.8523, 5.0),
            SpeedChange(4.0),
            Waypoint(18.529, 73.8524, 5.0),
            Land(),
        ))
        lines = encode(mission, ORIGIN, 5.0, default_speed=7.0).splitlines()

        assert float(fields_of(lines[3])[4]) == 7.0
        speed = fields_of(lines[4])
        assert speed[3] == "178"
        assert float(speed[4]) == 4.0
        assert float(speed[5]) == 4.0
        assert float(fields_of(lines[5])[4]) == 4.0

    def test_other_commands(self):
        """Test wait, circle and return-to-home records"""
        mission = Mission(commands=(
            Takeoff(*ORIGIN, 5.0),
            Wait(6.0),
            CirclePoint(18.53, 73.86, radius=25.0, turns=3),
            ReturnToHome(),
        ))
        lines = encode(mission, ORIGIN, 8.0).splitlines()

        wait = fields_of(lines[3])
        assert wait[3] == "19"
        assert float(wait[4]) == 6.0

        circle = fields_of(lines[4])
        assert circle[3] == "18"
        assert [float(v) for v in circle[4:7]] == [25.0, 3.0, 1.0]
        assert float(circle[10]) == 8.0

        assert fields_of(lines[5])[3] == "20"

    def test_file_seq_offset(self, sample_mission):
        """Test mission records are numbered from 1 after the home record"""
        lines = encode(sample_mission, ORIGIN, 5.0).splitlines()
        assert [int(fields_of(line)[0]) for line in lines[1:]] == [0, 1, 2, 3]


class TestExport:
    """Test validate-then-encode"""

    def test_export_valid(self, sample_mission):
        """Test a valid mission exports the same text as encode"""
        assert export_mission(sample_mission, ORIGIN, 5.0) == encode(sample_mission, ORIGIN, 5.0)

    def test_export_invalid(self):
        """Test an invalid mission is not exported"""
        with pytest.raises(MissionValidationError):
            export_mission(Mission(commands=(Land(),)), ORIGIN, 5.0)


class TestDecode:
    """Test reading uploaded waypoint files"""

    def test_decode_encoded(self, sample_mission):
        """Test positional records come back with mission seqs"""
        parsed = decode(encode(sample_mission, ORIGIN, 5.0))

        assert parsed.home.lat == ORIGIN[0]
        assert parsed.home.lon == ORIGIN[1]
        assert len(parsed) == 2
        assert parsed.to_list() == [
            {'seq': 0, 'lat': 18.52789, 'lng': 73.85223, 'alt': 5.0},
            {'seq': 1, 'lat': 18.528, 'lng': 73.8523, 'alt': 5.0},
        ]

    def test_zero_coordinates_dropped(self):
        """Test records at (0, 0) are treated as non-positional"""
        text = "\n".join([
            HEADER,
            record_line(0, 0, 3, 16, 0, 0, 0, 0, 18.5, 73.8, 10, 1),
            record_line(1, 0, 3, 19, 5, 0, 0, 0, 0, 0, 0, 1),
            record_line(2, 0, 3, 16, 0, 0, 0, 0, 18.6, 73.9, 10, 1),
        ])
        parsed = decode(text)

        assert parsed.home is None
        assert [wp.seq for wp in parsed] == [0, 2]

    def test_blank_lines_skipped(self):
        """Test trailing and interior blank lines are ignored"""
        text = HEADER + "\n\n" + record_line(0, 0, 3, 16, 0, 0, 0, 0, 1.5, 2.5, 3, 1) + "\n\n"
        assert len(decode(text)) == 1

    def test_spaces_accepted(self):
        """Test whitespace-separated records parse like tab-separated ones"""
        text = HEADER + "\n" + "0 0 3 16 0 0 0 0 1.5 2.5 3 1"
        assert decode(text).waypoints[0].lat == 1.5

    def test_missing_header(self):
        """Test a file without the header is rejected"""
        with pytest.raises(InvalidHeaderError) as exc_info:
            decode(record_line(0, 0, 3, 16, 0, 0, 0, 0, 1.5, 2.5, 3, 1))

        assert exc_info.value.line_number == 1

    def test_empty_file(self):
        """Test an empty file has no header"""
        with pytest.raises(InvalidHeaderError):
            decode("")

    def test_eleven_fields(self):
        """Test a short record is malformed and reports its line"""
        text = "\n".join([
            HEADER,
            record_line(0, 1, 0, 16, 0, 0, 0, 0, 18.5, 73.8, 5, 1),
            record_line(1, 0, 3, 16, 0, 0, 0, 0, 18.5, 73.8, 5),
        ])
        with pytest.raises(MalformedRecordError) as exc_info:
            decode(text)

        assert exc_info.value.line_number == 3
        assert "line 3" in str(exc_info.value)

    def test_non_numeric_field(self):
        """Test a non-numeric command code is malformed"""
        text = HEADER + "\n" + record_line(0, 0, 3, "WP", 0, 0, 0, 0, 1, 2, 3, 1)
        with pytest.raises(MalformedRecordError):
            decode(text)

    @pytest.mark.parametrize("lat", ["nan", "inf", "north"])
    def test_invalid_coordinate(self, lat):
        """Test non-finite or non-numeric coordinates are rejected"""
        text = HEADER + "\n" + record_line(0, 0, 3, 16, 0, 0, 0, 0, lat, 2, 3, 1)
        with pytest.raises(InvalidCoordinateError) as exc_info:
            decode(text)

        assert exc_info.value.line_number == 2

    @pytest.mark.parametrize("param", ["nan", "inf", "-inf"])
    def test_non_finite_param(self, param):
        """Test a non-finite param is a malformed record"""
        text = HEADER + "\n" + record_line(0, 0, 3, 19, param, 0, 0, 0, 18.5, 73.8, 5, 1)
        with pytest.raises(MalformedRecordError) as exc_info:
            decode(text)

        assert exc_info.value.line_number == 2
        assert "param1" in str(exc_info.value)

    @pytest.mark.parametrize("header", [HEADER + " ", " " + HEADER, HEADER + "\t"])
    def test_header_must_match_exactly(self, header):
        """Test whitespace around the header is rejected"""
        with pytest.raises(InvalidHeaderError):
            decode(header + "\n" + record_line(0, 0, 3, 16, 0, 0, 0, 0, 1.5, 2.5, 3, 1))

    def test_crlf_header(self):
        """Test Windows line endings are accepted"""
        text = HEADER + "\r\n" + record_line(0, 0, 3, 16, 0, 0, 0, 0, 1.5, 2.5, 3, 1) + "\r\n"
        assert decode(text).waypoints[0].lon == 2.5

    def test_parse_errors_share_base(self):
        """Test all decode failures are MissionParseError"""
        for cls in (InvalidHeaderError, MalformedRecordError,
                    InvalidCoordinateError, UnsupportedCommandError):
            assert issubclass(cls, MissionParseError)

    def test_parse_records(self):
        """Test records keep their file line numbers"""
        text = HEADER + "\n\n" + record_line(4, 0, 3, 21, 0, 0, 0, 0, 0, 0, 0, 1)
        records = parse_records(text)

        assert records == [(3, MissionRecord(4, 0, 3, 21))]


class TestDecodeMission:
    """Test importing full missions"""

    def test_round_trip(self, sample_mission):
        """Test a valid mission survives encode then import"""
        imported = decode_mission(encode(sample_mission, ORIGIN, 5.0))
        assert imported.commands == sample_mission.commands

    def test_all_command_types(self):
        """Test every command code maps back to its variant"""
        mission = Mission(commands=(
            Takeoff(*ORIGIN, 5.0),
            SpeedChange(6.0),
            Waypoint(18.528, 73.8523, 7.0),
            Wait(4.0),
            CirclePoint(18.529, 73.8524, radius=15.0, turns=2),
            ReturnToHome(),
        ))
        imported = decode_mission(encode(mission, ORIGIN, 5.0))

        assert [type(c) for c in imported] == [
            Takeoff, SpeedChange, Waypoint, Wait, CirclePoint, ReturnToHome]
        assert imported[1].speed == 6.0
        assert imported[2].speed == 6.0
        assert imported[3].duration == 4.0
        assert imported[4].radius == 15.0
        assert imported[4].turns == 2

    def test_without_home_record(self):
        """Test a file whose first record isn't home imports every record"""
        text = "\n".join([
            HEADER,
            record_line(0, 0, 3, 22, 0, 0, 0, 0, 18.5, 73.8, 5, 1),
            record_line(1, 0, 3, 21, 0, 0, 0, 0, 0, 0, 0, 1),
        ])
        imported = decode_mission(text)

        assert [type(c) for c in imported] == [Takeoff, Land]

    def test_unsupported_command(self):
        """Test a command code with no mission counterpart aborts the import"""
        text = HEADER + "\n" + record_line(0, 0, 3, 183, 0, 0, 0, 0, 0, 0, 0, 1)
        with pytest.raises(UnsupportedCommandError) as exc_info:
            decode_mission(text)

        assert exc_info.value.command == 183
        assert exc_info.value.line_number == 2

    def test_circle_with_non_finite_turns(self):
        """Test a circle record with NaN turns fails as a parse error"""
        text = "\n".join([
            HEADER,
            record_line(0, 1, 0, 16, 0, 0, 0, 0, 18.5, 73.8, 5, 1),
            record_line(1, 0, 3, 18, 10, "nan", 1, 0, 18.5, 73.8, 5, 1),
        ])
        with pytest.raises(MalformedRecordError) as exc_info:
            decode_mission(text)

        assert exc_info.value.line_number == 3
