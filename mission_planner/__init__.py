"""
Drone Mission Planner

Plan drone missions on a map, edit them in 3D and export them as
QGC WPL 110 waypoint files.
"""

__version__ = "0.1.0"
