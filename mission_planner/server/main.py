#!/usr/bin/env python3
"""
Mission Planner Server - Entry Point

Runs the REST API around one in-memory planning session.
"""

import argparse
import logging
import signal
import sys

from ..config import Config, set_config
from ..utils.logger import setup_logging
from .api import create_api_server

_api_server = None


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully"""
    logging.info(f"Received signal {signum}, shutting down...")
    if _api_server:
        _api_server.shutdown()
    sys.exit(0)


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Drone Mission Planner Server",
        prog="mission-planner-server"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="REST API port (default: from config, 8080)"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="REST API host (default: from config, 0.0.0.0)"
    )

    parser.add_argument(
        "--origin",
        type=float,
        nargs=2,
        metavar=("LAT", "LON"),
        default=None,
        help="Home point / local frame origin"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path"
    )

    return parser.parse_args(argv)


def build_config(args) -> Config:
    """Load configuration and apply command line overrides"""
    config = Config.load(args.config)

    if args.port is not None:
        config.server.port = args.port
    if args.host is not None:
        config.server.host = args.host
    if args.origin is not None:
        config.frame.origin_lat, config.frame.origin_lon = args.origin
    if args.verbose:
        config.interface.log_level = "DEBUG"
    if args.log_file:
        config.interface.log_file = args.log_file

    return config


def main(argv=None):
    """Main entry point for mission-planner-server"""
    global _api_server

    args = parse_args(argv)
    config = build_config(args)
    set_config(config)

    setup_logging(level=config.interface.log_level,
                  log_file=config.interface.log_file or None)

    logger = logging.getLogger(__name__)
    logger.info("Mission planner server starting...")
    logger.info(f"Frame origin: {config.frame.origin_lat:.7f}, {config.frame.origin_lon:.7f}")

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    _api_server = create_api_server(config)
    try:
        _api_server.run()
    finally:
        logger.info("Shutting down...")
        _api_server.shutdown()


if __name__ == "__main__":
    main()
