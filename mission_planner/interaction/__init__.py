"""
3D interaction module

Ray casting and the drag-to-edit controller for mission handles.
"""

from .geometry import Vector3, Ray, Plane
from .camera import PerspectiveCamera
from .events import PointerEvent, PointerEventSource
from .drag import LockMode, DragState, DragInteractionController

__all__ = [
    'Vector3',
    'Ray',
    'Plane',
    'PerspectiveCamera',
    'PointerEvent',
    'PointerEventSource',
    'LockMode',
    'DragState',
    'DragInteractionController',
]
