import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError
from .stream import automatic_stream_name

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/boot/frc.json"

# Cameras carrying this name are validated but never started
DISABLED_CAMERA_NAME = "BadCam"

NT_MODES = {"client": False, "server": True}


@dataclass(frozen=True)
class CameraConfig:
    name: str
    path: str
    raw_config: Dict[str, Any] = field(default_factory=dict, compare=False)
    stream_config: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def enabled(self) -> bool:
        return self.path != ""


@dataclass(frozen=True)
class SwitchedCameraConfig:
    name: str
    key: str


@dataclass(frozen=True)
class RoutingSettings:
    """Zone router tuning; every field has a default so the section is optional"""

    tick_interval: float = 0.2
    zone_key: str = "Robot Zone"
    left_alias: str = "/dev/leftCam"
    right_alias: str = "/dev/rightCam"
    use_sudo: bool = True
    initial_left: int = 0
    initial_right: int = 1
    commit_failed_remaps: bool = False


@dataclass(frozen=True)
class Config:
    team: int
    server_mode: bool = False
    cameras: Tuple[CameraConfig, ...] = ()
    switched_cameras: Tuple[SwitchedCameraConfig, ...] = ()
    routing: RoutingSettings = RoutingSettings()


def _read_string(entry: Dict, key: str):
    value = entry.get(key)
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _read_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _read_camera(entry, source: str) -> CameraConfig:
    if not isinstance(entry, dict):
        raise ConfigError("camera entry must be an object", source)

    name = _read_string(entry, "name")
    if not name:
        raise ConfigError("could not read camera name", source)

    path = _read_string(entry, "path")
    if path is None:
        raise ConfigError(f"camera '{name}': could not read path", source)

    stream = entry.get("stream")
    if stream is not None and not isinstance(stream, dict):
        raise ConfigError(f"camera '{name}': stream must be an object", source)

    return CameraConfig(name=name, path=path, raw_config=dict(entry), stream_config=stream)


def _read_switched_camera(entry, source: str) -> SwitchedCameraConfig:
    if not isinstance(entry, dict):
        raise ConfigError("switched camera entry must be an object", source)

    name = _read_string(entry, "name")
    if name is None:
        raise ConfigError("could not read switched camera name", source)

    key = _read_string(entry, "key")
    if key is None:
        raise ConfigError(f"switched camera '{name}': could not read key", source)

    return SwitchedCameraConfig(name=name, key=key)


def _read_routing(section, source: str) -> RoutingSettings:
    if section is None:
        return RoutingSettings()
    if not isinstance(section, dict):
        raise ConfigError("routing must be an object", source)

    values = {}
    for name in ("zone_key", "left_alias", "right_alias"):
        if name in section:
            values[name] = str(section[name])
    for name in ("use_sudo", "commit_failed_remaps"):
        if name in section:
            if not isinstance(section[name], bool):
                raise ConfigError(f"routing {name} must be true or false, got {section[name]!r}", source)
            values[name] = section[name]
    for name in ("initial_left", "initial_right"):
        if name in section:
            number = _read_int(section[name])
            if number is None or number < 0:
                raise ConfigError(f"routing {name} must be a device index", source)
            values[name] = number
    if "tick_interval" in section:
        try:
            interval = float(section["tick_interval"])
        except (TypeError, ValueError):
            raise ConfigError("routing tick_interval must be a number", source)
        if interval <= 0:
            raise ConfigError("routing tick_interval must be positive", source)
        values["tick_interval"] = interval

    settings = replace(RoutingSettings(), **values)
    if settings.left_alias == settings.right_alias:
        raise ConfigError("routing left_alias and right_alias must differ", source)
    return settings


def _check_stream_names(cameras, switched, source: str):
    """Switched camera names must be unique and distinct from the camera streams"""
    taken = set()
    for camera in cameras:
        if camera.enabled:
            taken.add(automatic_stream_name(camera.name, taken))

    for config in switched:
        if config.name in taken:
            raise ConfigError(f"switched camera '{config.name}': stream name already in use", source)
        taken.add(config.name)


def parse_config(document, source: str = "<memory>") -> Config:
    """Validate a parsed config document and build a Config.

    Either every field is valid and a Config is returned, or ConfigError is
    raised; nothing is built from a partially valid document.
    """
    if not isinstance(document, dict):
        raise ConfigError("must be JSON object", source)

    if "team" not in document:
        raise ConfigError("could not read team number", source)
    team = _read_int(document["team"])
    if team is None:
        raise ConfigError(f"could not read team number from {document['team']!r}", source)

    server_mode = False
    if "ntmode" in document:
        mode = str(document["ntmode"]).lower()
        if mode in NT_MODES:
            server_mode = NT_MODES[mode]
        else:
            logger.warning(f"config error in '{source}': could not understand ntmode value '{document['ntmode']}'")

    entries = document.get("cameras")
    if not isinstance(entries, list):
        raise ConfigError("could not read cameras", source)

    cameras = []
    for entry in entries:
        camera = _read_camera(entry, source)
        if camera.name == DISABLED_CAMERA_NAME:
            logger.info(f"Skipping disabled camera entry '{camera.name}'")
            continue
        cameras.append(camera)

    switched = []
    if "switched cameras" in document:
        entries = document["switched cameras"]
        if not isinstance(entries, list):
            raise ConfigError("could not read switched cameras", source)
        switched = [_read_switched_camera(entry, source) for entry in entries]
    _check_stream_names(cameras, switched, source)

    routing = _read_routing(document.get("routing"), source)

    return Config(
        team=team,
        server_mode=server_mode,
        cameras=tuple(cameras),
        switched_cameras=tuple(switched),
        routing=routing,
    )


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Read a JSON or YAML config file and parse it"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"could not open file: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse file: {e}", path) from e

    config = parse_config(document, path)
    logger.info(f"Loaded config from {path}: {len(config.cameras)} cameras, "
                f"{len(config.switched_cameras)} switched cameras")
    return config
