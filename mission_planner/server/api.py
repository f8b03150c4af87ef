"""
REST API for the mission planner

HTTP endpoints for editing the session mission, reading its statistics
and validation, exporting/importing QGC WPL files and publishing
uploaded waypoints to live-map consumers.
"""

import logging
import math
import threading
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from ..config import Config, get_config
from ..mission import (
    IndexOutOfRangeError,
    InvalidCommandError,
    MissionParseError,
    MissionSession,
    MissionValidationError,
    WaypointBroadcast,
    publish_mission_file,
)
from ..utils.geo import CoordinateError

logger = logging.getLogger(__name__)


class RequestError(Exception):
    """Bad request payload"""
    pass


def _number(data: Dict[str, Any], key: str, required: bool = False) -> Optional[float]:
    if key not in data or data[key] is None:
        if required:
            raise RequestError(f"Missing field '{key}'")
        return None
    try:
        value = float(data[key])
    except (TypeError, ValueError):
        raise RequestError(f"Field '{key}' must be a number")
    if not math.isfinite(value):
        raise RequestError(f"Field '{key}' must be finite")
    return value


def create_api_server(config: Optional[Config] = None,
                      session: Optional[MissionSession] = None,
                      broadcast: Optional[WaypointBroadcast] = None) -> 'APIServer':
    """
    Create REST API server

    Args:
        config: Configuration (global config if None)
        session: Mission session (new session on the configured frame if None)
        broadcast: Waypoint broadcast (new one if None)

    Returns:
        APIServer instance
    """
    if config is None:
        config = get_config()
    if session is None:
        session = MissionSession(config.frame.to_frame(), config.mission)
    if broadcast is None:
        broadcast = WaypointBroadcast()
    return APIServer(config, session, broadcast)


class APIServer:
    """REST API Server"""

    def __init__(self, config: Config, session: MissionSession,
                 broadcast: WaypointBroadcast):
        self.config = config
        self.session = session
        self.broadcast = broadcast
        self.host = config.server.host
        self.port = config.server.port

        self.app = Flask(__name__)
        CORS(self.app)

        # Flask may serve requests on several threads
        self._lock = threading.Lock()
        self._setup_errors()
        self._setup_routes()

    def _mission_payload(self) -> Dict[str, Any]:
        mission = self.session.mission
        result = mission.to_dict()
        result['stats'] = self.session.stats().to_dict()
        result['validation'] = self.session.validate().to_dict()
        return result

    def _setup_errors(self):
        @self.app.errorhandler(RequestError)
        def bad_request(e):
            return jsonify({'error': str(e)}), 400

        @self.app.errorhandler(CoordinateError)
        def bad_coordinate(e):
            logger.warning(f"Rejected coordinate: {e}")
            return jsonify({'error': str(e)}), 400

        @self.app.errorhandler(InvalidCommandError)
        def bad_command(e):
            logger.warning(f"Rejected command: {e}")
            return jsonify({'error': str(e)}), 400

        @self.app.errorhandler(IndexOutOfRangeError)
        def no_such_command(e):
            return jsonify({'error': str(e)}), 404

        @self.app.errorhandler(MissionValidationError)
        def invalid_mission(e):
            return jsonify({'error': str(e), 'kind': e.kind.name, 'valid': False}), 400

        @self.app.errorhandler(MissionParseError)
        def parse_failed(e):
            return jsonify({'error': str(e), 'line': e.line_number}), 400

    def _setup_routes(self):
        """Setup API routes"""

        # ==================== Health ====================

        @self.app.route('/api/health', methods=['GET'])
        def health():
            """Health check endpoint"""
            return jsonify({
                'status': 'ok',
                'commands': len(self.session.mission),
                'origin': {
                    'lat': self.session.frame.origin_lat,
                    'lon': self.session.frame.origin_lon,
                },
            })

        # ==================== Mission ====================

        @self.app.route('/api/mission', methods=['GET'])
        def get_mission():
            """Current mission with stats and validation"""
            with self._lock:
                return jsonify(self._mission_payload())

        @self.app.route('/api/mission', methods=['DELETE'])
        def clear_mission():
            """Discard the current mission"""
            with self._lock:
                self.session.clear()
                return jsonify(self._mission_payload())

        @self.app.route('/api/mission/commands', methods=['POST'])
        def add_command():
            """
            Append a command

            Request body: {type, ...fields}; missing altitude, speed and
            preset values fall back to the session defaults.
            """
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise RequestError('No data provided')

            with self._lock:
                self._add_command(data)
                return jsonify(self._mission_payload()), 201

        @self.app.route('/api/mission/commands/<int:index>', methods=['PATCH'])
        def update_command(index: int):
            """Merge fields into a command"""
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise RequestError('No data provided')

            patch = {}
            for key, value in data.items():
                if key == 'turns':
                    patch[key] = int(_number(data, key, required=True))
                elif key in ('lat', 'lon', 'alt', 'speed', 'hover_time',
                             'duration', 'radius'):
                    patch[key] = _number(data, key)

            with self._lock:
                self.session.update_field(index, **patch)
                return jsonify(self._mission_payload())

        @self.app.route('/api/mission/commands/<int:index>', methods=['DELETE'])
        def remove_command(index: int):
            with self._lock:
                self.session.remove_at(index)
                return jsonify(self._mission_payload())

        @self.app.route('/api/mission/commands/<int:index>/move', methods=['POST'])
        def move_command(index: int):
            """Reorder: body {to: int}"""
            data = request.get_json(silent=True) or {}
            to_index = _number(data, 'to', required=True)
            with self._lock:
                self.session.move_to(index, int(to_index))
                return jsonify(self._mission_payload())

        @self.app.route('/api/mission/altitude', methods=['PUT'])
        def set_altitudes():
            """Set every waypoint's altitude: body {alt: float}"""
            data = request.get_json(silent=True) or {}
            alt = _number(data, 'alt', required=True)
            with self._lock:
                self.session.set_all_waypoint_altitudes(alt)
                return jsonify(self._mission_payload())

        @self.app.route('/api/mission/stats', methods=['GET'])
        def get_stats():
            with self._lock:
                return jsonify(self.session.stats().to_dict())

        @self.app.route('/api/mission/validate', methods=['GET'])
        def get_validation():
            with self._lock:
                return jsonify(self.session.validate().to_dict())

        # ==================== Files ====================

        @self.app.route('/api/mission/export', methods=['GET'])
        def export_mission():
            """Download the mission as a QGC WPL 110 file"""
            with self._lock:
                text = self.session.export()
            filename = self.config.server.export_filename
            return Response(
                text,
                mimetype='text/plain',
                headers={'Content-Disposition': f'attachment; filename={filename}'},
            )

        @self.app.route('/api/mission/import', methods=['POST'])
        def import_mission():
            """Replace the mission with an uploaded QGC WPL 110 file"""
            text = self._uploaded_text()
            with self._lock:
                self.session.import_file(text)
                return jsonify(self._mission_payload())

        # ==================== Waypoint broadcast ====================

        @self.app.route('/api/waypoints', methods=['GET'])
        def get_waypoints():
            return jsonify({'waypoints': self.broadcast.waypoints})

        @self.app.route('/api/waypoints/upload', methods=['POST'])
        def upload_waypoints():
            """Decode an uploaded mission file and publish its waypoints"""
            text = self._uploaded_text()
            waypoints = publish_mission_file(text, self.broadcast)
            return jsonify({'success': True, 'count': len(waypoints), 'waypoints': waypoints})

    # ==================== Helpers ====================

    def _uploaded_text(self) -> str:
        """Mission file from a multipart 'file' field or the raw body"""
        upload = request.files.get('file')
        raw = upload.read() if upload is not None else request.get_data()
        if not raw:
            raise RequestError('No mission file provided')
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError:
            raise RequestError('Mission file is not valid UTF-8')

    def _add_command(self, data: Dict[str, Any]):
        session = self.session
        command_type = data.get('type')

        if command_type == 'takeoff':
            session.add_takeoff(_number(data, 'alt'))
        elif command_type == 'waypoint':
            session.add_waypoint(
                _number(data, 'lat', required=True),
                _number(data, 'lon', required=True),
                _number(data, 'alt'),
                hover_time=_number(data, 'hover_time'),
            )
        elif command_type == 'wait':
            session.add_wait(_number(data, 'duration'))
        elif command_type == 'land':
            session.add_land()
        elif command_type == 'rth':
            session.add_rth()
        elif command_type == 'circle':
            turns = _number(data, 'turns')
            session.add_circle(
                _number(data, 'lat'),
                _number(data, 'lon'),
                _number(data, 'radius'),
                int(turns) if turns is not None else None,
            )
        elif command_type == 'speed_change':
            session.add_speed_change(_number(data, 'speed', required=True))
        else:
            raise RequestError(f"Unknown command type '{command_type}'")

    def run(self):
        """Serve in the foreground"""
        logger.info(f"REST API listening on http://{self.host}:{self.port}")
        self.app.run(
            host=self.host,
            port=self.port,
            debug=self.config.server.debug,
            use_reloader=False,
        )

    def shutdown(self):
        """Release session resources"""
        self.broadcast.close()
