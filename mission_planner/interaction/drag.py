"""
Drag interaction controller

Turns pointer movement over the 3D view into position updates of a
mission command. Each gesture is a small state machine:

    IDLE --pointer_down--> DRAGGING --up/cancel/blur/teardown--> IDLE

Global pointer listeners exist only while DRAGGING and are removed on
every way out of it.
"""

import logging
from enum import Enum, auto
from typing import Dict, Optional, Set, Tuple

from ..mission.models import IndexOutOfRangeError
from ..mission.session import MissionSession
from ..utils.geo import CoordinateError
from .camera import PerspectiveCamera
from .events import (
    BLUR,
    POINTER_CANCEL,
    POINTER_MOVE,
    POINTER_UP,
    PointerEvent,
    PointerEventSource,
)
from .geometry import EAST, EPSILON, WORLD_UP, Plane, Vector3

logger = logging.getLogger(__name__)


class LockMode(Enum):
    """Constraint on which axes a drag may change"""
    NONE = "none"                       # Free movement in the view-facing plane
    ALTITUDE_ONLY = "altitude_only"     # Altitude fixed, lat/lon move
    HORIZONTAL_ONLY = "horizontal_only"  # Lat/lon fixed, altitude moves


class DragState(Enum):
    """Drag gesture states"""
    IDLE = auto()
    DRAGGING = auto()


VALID_TRANSITIONS: Dict[DragState, Set[DragState]] = {
    DragState.IDLE: {DragState.DRAGGING},
    DragState.DRAGGING: {DragState.IDLE},
}


class DragInteractionController:
    """
    Drag-to-edit for mission command handles in the 3D view

    Pointer rays are intersected with a plane through the dragged handle
    whose orientation depends on the lock mode; the hit point is
    converted to GPS and written back through the session.
    """

    def __init__(self, session: MissionSession,
                 camera: PerspectiveCamera,
                 events: PointerEventSource,
                 lock_mode: LockMode = LockMode.NONE):
        """
        Args:
            session: Session holding the mission being edited
            camera: Camera the view is rendered from
            events: Source of global pointer events
            lock_mode: Initial lock mode
        """
        self.session = session
        self.camera = camera
        self.events = events
        self.lock_mode = lock_mode

        self._state = DragState.IDLE
        self._index: Optional[int] = None
        self._handle: Optional[Vector3] = None
        self._handlers = {
            POINTER_MOVE: self._on_pointer_move,
            POINTER_UP: self._on_pointer_up,
            POINTER_CANCEL: self._on_pointer_cancel,
            BLUR: self._on_blur,
        }

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state == DragState.DRAGGING

    @property
    def dragged_index(self) -> Optional[int]:
        return self._index

    @property
    def handle_position(self) -> Optional[Vector3]:
        """Current local position of the dragged handle"""
        return self._handle

    # ==================== State machine ====================

    def _transition_to(self, new_state: DragState) -> bool:
        if new_state not in VALID_TRANSITIONS[self._state]:
            logger.warning(f"Invalid drag transition: {self._state.name} -> {new_state.name}")
            return False
        logger.debug(f"Drag state: {self._state.name} -> {new_state.name}")
        self._state = new_state
        return True

    def _attach(self):
        for event_type, handler in self._handlers.items():
            self.events.add_listener(event_type, handler)

    def _detach(self):
        for event_type, handler in self._handlers.items():
            self.events.remove_listener(event_type, handler)

    def _end(self, reason: str):
        """Leave DRAGGING; listeners are always removed"""
        self._detach()
        if self._state == DragState.DRAGGING:
            logger.info(f"Drag of command {self._index} ended ({reason})")
            self._transition_to(DragState.IDLE)
        self._index = None
        self._handle = None

    # ==================== Gesture ====================

    def pointer_down(self, index: int) -> bool:
        """
        Start dragging the handle of command `index`

        Returns:
            True if a drag started; False for commands without a position
            or whose position can't be placed in the local frame
        """
        if self.is_dragging:
            self._end("superseded")

        command = self.session.mission[index]
        if not command.is_positional:
            logger.warning(f"Command {index} ({command.command_type.value}) is not draggable")
            return False

        try:
            handle = Vector3(*self.session.local_position(index))
        except CoordinateError as e:
            logger.warning(f"Cannot drag command {index}: {e}")
            return False

        self._index = index
        self._handle = handle
        self._transition_to(DragState.DRAGGING)
        self._attach()
        logger.info(f"Dragging command {index} ({self.lock_mode.value})")
        return True

    def pointer_move(self, event: PointerEvent) -> Optional[Tuple[float, float, float]]:
        """
        Move the dragged handle under the pointer

        Returns:
            New (lat, lon, alt) of the handle, or None if nothing changed
        """
        if not self.is_dragging:
            return None

        ray = self.camera.ray_from_client(event.client_x, event.client_y)
        hit = self.constraint_plane(self._handle).intersect_ray(ray)
        if hit is None or not hit.is_finite():
            return None

        target = self.constrain(self._handle, hit)
        try:
            command = self.session.mission[self._index]
            if not hasattr(command, 'alt'):
                target = Vector3(target.x, self._handle.y, target.z)
            lat, lon, alt = self.session.frame.to_geodetic(target.x, target.y, target.z)
            self.session.update_field(self._index, **self._patch(lat, lon, alt))
        except CoordinateError as e:
            logger.warning(f"Rejected drag update for command {self._index}: {e}")
            return None
        except IndexOutOfRangeError:
            self._end("command removed")
            raise

        self._handle = target
        return lat, lon, alt

    def pointer_up(self):
        self._end("pointer up")

    def cancel(self, reason: str = "cancelled"):
        self._end(reason)

    def teardown(self):
        """Release everything; call when the owning view goes away"""
        self._end("teardown")

    def __enter__(self) -> 'DragInteractionController':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.teardown()
        return False

    # ==================== Listeners ====================

    def _on_pointer_move(self, event: Optional[PointerEvent]):
        if event is not None:
            self.pointer_move(event)

    def _on_pointer_up(self, event: Optional[PointerEvent]):
        self.pointer_up()

    def _on_pointer_cancel(self, event: Optional[PointerEvent]):
        self.cancel("pointer cancel")

    def _on_blur(self, event: Optional[PointerEvent]):
        self.cancel("focus lost")

    # ==================== Constraints ====================

    def constraint_plane(self, handle: Vector3) -> Plane:
        """Plane the pointer ray is intersected with for the current lock mode"""
        if self.lock_mode == LockMode.ALTITUDE_ONLY:
            return Plane.from_normal_and_point(WORLD_UP, handle)

        if self.lock_mode == LockMode.HORIZONTAL_ONLY:
            # Vertical plane facing the camera as much as possible
            view = handle - self.camera.position
            horizontal = Vector3(view.x, 0.0, view.z)
            if horizontal.magnitude() < EPSILON:
                horizontal = EAST
            return Plane.from_normal_and_point(horizontal, handle)

        normal = self.camera.position - handle
        if normal.magnitude() < EPSILON:
            normal = -self.camera.forward
        return Plane.from_normal_and_point(normal, handle)

    def constrain(self, handle: Vector3, hit: Vector3) -> Vector3:
        """Hold the locked axes at the handle's values"""
        if self.lock_mode == LockMode.ALTITUDE_ONLY:
            return Vector3(hit.x, handle.y, hit.z)
        if self.lock_mode == LockMode.HORIZONTAL_ONLY:
            return Vector3(handle.x, hit.y, handle.z)
        return hit

    def _patch(self, lat: float, lon: float, alt: float) -> dict:
        if self.lock_mode == LockMode.ALTITUDE_ONLY:
            return {'lat': lat, 'lon': lon}
        if self.lock_mode == LockMode.HORIZONTAL_ONLY:
            return {'alt': alt}
        return {'lat': lat, 'lon': lon, 'alt': alt}
