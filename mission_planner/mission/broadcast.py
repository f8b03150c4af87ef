"""
Waypoint broadcast

Shared channel that carries the waypoints of an uploaded mission file to
live-map overlays. Created once per session and passed to whoever needs
it; consumers subscribe and unsubscribe explicitly.
"""

import logging
from typing import Callable, Dict, List

from .codec import decode

logger = logging.getLogger(__name__)

WaypointList = List[Dict[str, float]]
Listener = Callable[[WaypointList], None]


class WaypointBroadcast:
    """
    Publish/subscribe store for the current waypoint list

    Each waypoint is a dict with seq, lat, lng and alt.
    """

    def __init__(self):
        self._waypoints: WaypointList = []
        self._listeners: List[Listener] = []
        self._closed = False

    @property
    def waypoints(self) -> WaypointList:
        """Snapshot of the last published list"""
        return [dict(wp) for wp in self._waypoints]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register a listener

        Returns:
            Function that removes the listener again
        """
        if self._closed:
            raise RuntimeError("Waypoint broadcast is closed")
        if callback not in self._listeners:
            self._listeners.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Listener) -> bool:
        """Remove a listener; False if it wasn't registered"""
        if callback in self._listeners:
            self._listeners.remove(callback)
            return True
        return False

    def publish(self, waypoints: WaypointList):
        """Replace the waypoint list and notify listeners"""
        if self._closed:
            raise RuntimeError("Waypoint broadcast is closed")
        self._waypoints = [dict(wp) for wp in waypoints]
        logger.info(f"Publishing {len(self._waypoints)} waypoints to {len(self._listeners)} listeners")

        for callback in list(self._listeners):
            try:
                callback(self.waypoints)
            except Exception as e:
                logger.error(f"Error in waypoint listener {callback!r}: {e}")

    def close(self):
        """Drop all listeners and reject further use"""
        self._listeners.clear()
        self._waypoints = []
        self._closed = True


def publish_mission_file(text: str, broadcast: WaypointBroadcast) -> WaypointList:
    """
    Decode an uploaded mission file and publish its waypoints

    Nothing is published if the file fails to parse.

    Raises:
        MissionParseError: If the file is invalid
    """
    parsed = decode(text)
    waypoints = parsed.to_list()
    broadcast.publish(waypoints)
    return waypoints
