"""
Camera routing package for a vision coprocessor.
Starts the configured capture devices, serves switched streams selected by
signal values, and keeps the left/right camera aliases on the devices chosen
by the robot's zone. Uses PyAV for capture and Pillow for frames.
"""

from .alias import AliasManager, CommandAliasManager
from .app import Application, RouterContext
from .bus import SignalBus, SignalEvent, Subscription
from .camera import CameraHandle
from .config import (
    CameraConfig,
    Config,
    RoutingSettings,
    SwitchedCameraConfig,
    DEFAULT_CONFIG_PATH,
    DISABLED_CAMERA_NAME,
    load_config,
    parse_config,
)
from .errors import CamrouterError, ConfigError, DeviceOpError, ResolutionError
from .registry import CameraRegistry
from .stream import CameraServer, StreamSink
from .switched import SwitchedCameraController
from .zone import RoutingState, ZoneRouter, ZONE_RULES
from . import utils

__all__ = [
    "AliasManager",
    "CommandAliasManager",
    "Application",
    "RouterContext",
    "SignalBus",
    "SignalEvent",
    "Subscription",
    "CameraHandle",
    "CameraConfig",
    "Config",
    "RoutingSettings",
    "SwitchedCameraConfig",
    "DEFAULT_CONFIG_PATH",
    "DISABLED_CAMERA_NAME",
    "load_config",
    "parse_config",
    "CamrouterError",
    "ConfigError",
    "DeviceOpError",
    "ResolutionError",
    "CameraRegistry",
    "CameraServer",
    "StreamSink",
    "SwitchedCameraController",
    "RoutingState",
    "ZoneRouter",
    "ZONE_RULES",
    "utils",
]
