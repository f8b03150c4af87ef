"""
Configuration management for the mission planner

All parameters are configurable and can be overridden via:
1. config/default.yaml
2. Environment variables (prefixed with MISSIONPLAN_)
3. Command line arguments
"""

import os
import yaml
from dataclasses import dataclass, field, asdict
from typing import Optional
from pathlib import Path

from .utils.geo import CoordinateFrame, DEFAULT_ZOOM


@dataclass
class FrameConfig:
    """Local frame anchor"""
    origin_lat: float = 18.5278859      # Pune
    origin_lon: float = 73.8522314
    zoom: int = DEFAULT_ZOOM            # Tile zoom used for meters-per-tile

    def to_frame(self) -> CoordinateFrame:
        return CoordinateFrame(self.origin_lat, self.origin_lon, self.zoom)


@dataclass
class MissionConfig:
    """Mission planning defaults"""
    default_altitude_m: float = 5.0     # New waypoints and home record
    default_speed_ms: float = 10.0      # Cruise speed until a speed change
    takeoff_speed_ms: float = 2.0       # Climb rate used for estimates
    landing_speed_ms: float = 1.0       # Descent rate used for estimates

    # Command presets
    wait_time_s: float = 5.0
    circle_radius_m: float = 10.0
    circle_turns: int = 1


@dataclass
class ServerConfig:
    """REST API configuration"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    export_filename: str = "mission.waypoints"


@dataclass
class InterfaceConfig:
    """Logging configuration"""
    log_file: str = ""
    log_level: str = "INFO"


@dataclass
class Config:
    """Main configuration container"""

    frame: FrameConfig = field(default_factory=FrameConfig)
    mission: MissionConfig = field(default_factory=MissionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    interface: InterfaceConfig = field(default_factory=InterfaceConfig)

    SECTIONS = ('frame', 'mission', 'server', 'interface')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from YAML file and environment"""
        config = cls()

        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "default.yaml"

        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config._update_from_dict(yaml_config)

        config._update_from_env()

        return config

    def _update_from_dict(self, d: dict):
        """Update config from dictionary (e.g., YAML)"""
        for section_name, section_data in d.items():
            if section_name in self.SECTIONS and isinstance(section_data, dict):
                section = getattr(self, section_name)
                for key, value in section_data.items():
                    if hasattr(section, key):
                        setattr(section, key, value)

    def _update_from_env(self, environ: Optional[dict] = None):
        """Override config from environment variables"""
        if environ is None:
            environ = os.environ
        prefix = "MISSIONPLAN_"
        for key, value in environ.items():
            if not key.startswith(prefix):
                continue
            # MISSIONPLAN_SECTION_KEY
            parts = key[len(prefix):].lower().split("_", 1)
            if len(parts) != 2:
                continue
            section_name, param_name = parts
            if section_name not in self.SECTIONS:
                continue
            section = getattr(self, section_name)
            if not hasattr(section, param_name):
                continue

            current_value = getattr(section, param_name)
            if isinstance(current_value, bool):
                setattr(section, param_name, value.lower() in ('true', '1', 'yes'))
            elif isinstance(current_value, int):
                setattr(section, param_name, int(value))
            elif isinstance(current_value, float):
                setattr(section, param_name, float(value))
            else:
                setattr(section, param_name, value)

    def to_dict(self) -> dict:
        return {name: asdict(getattr(self, name)) for name in self.SECTIONS}

    def save(self, config_path: str):
        """Save current configuration to YAML file"""
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Optional[Config]):
    """Set the global configuration instance"""
    global _config
    _config = config
