import argparse
import logging
import platform
from dataclasses import replace

from .app import Application
from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ConfigError
from .utils import get_setting, list_available_cameras, IS_JETSON

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Zone-driven camera routing for a vision coprocessor")
    parser.add_argument("config", nargs="?", default=DEFAULT_CONFIG_PATH,
                        help=f"Path to JSON or YAML camera config (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--tick", type=float, default=None,
                        help="Zone polling interval in seconds (overrides config)")
    parser.add_argument("--duration", type=float, default=None,
                        help="Run duration in seconds (default: continuous)")
    parser.add_argument("--list-cameras", action="store_true",
                        help="List available capture devices and exit")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: INFO)")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s - %(levelname)s - %(message)s")

    # Handle list cameras option
    if args.list_cameras:
        print(f"Platform: {platform.system()}")
        print(f"Jetson detected: {IS_JETSON}")
        print("Scanning for available cameras...")

        available_cameras = list_available_cameras()
        if available_cameras:
            print(f"Found {len(available_cameras)} available cameras: {available_cameras}")
        else:
            print("No cameras found")
        return 0

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    tick = float(get_setting(args.tick, config.routing.tick_interval, 0.2))
    if tick <= 0:
        logger.error(f"Tick interval must be positive, got {tick}")
        return 1
    config = replace(config, routing=replace(config.routing, tick_interval=tick))

    logger.info("Starting camera routing")
    logger.info(f"Platform: {platform.system()}")
    logger.info(f"Cameras: {[camera.name for camera in config.cameras]}")
    logger.info(f"Switched cameras: {[camera.name for camera in config.switched_cameras]}")
    logger.info(f"Zone tick: {tick}s")

    Application(config).run(args.duration)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
