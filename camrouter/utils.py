import os
import time
import platform
import logging
from typing import Optional, List, Dict

import av

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = platform.system() == "Windows"
IS_LINUX = platform.system() == "Linux"
IS_JETSON = os.path.exists("/etc/nv_tegra_release") if IS_LINUX else False

# Keys of a camera's config blob that map onto capture options
_SIZE_KEYS = ("width", "height")
_FPS_KEY = "fps"
_PIXEL_FORMAT_KEY = "pixel format"

# cscore pixel format names -> FFmpeg v4l2 input formats
PIXEL_FORMATS = {
    "mjpeg": "mjpeg",
    "yuyv": "yuyv422",
    "rgb565": "rgb565le",
    "bgr": "bgr24",
    "gray": "gray",
}


def should_stop(start_time: float, duration: Optional[float]) -> bool:
    return duration is not None and (time.time() - start_time) >= duration


def get_setting(cli_value, config_value, default):
    return cli_value if cli_value is not None else (config_value if config_value is not None else default)


def get_camera_device_path(camera_id) -> str:
    """Get the device path for a numeric camera index"""
    if IS_WINDOWS:
        return f"video={camera_id}"
    return f"/dev/video{camera_id}"


def get_platform_backend() -> str:
    """Return the single appropriate AV input backend for the current platform."""
    if IS_WINDOWS:
        return 'dshow'
    elif IS_LINUX:
        return 'v4l2'
    else:
        # macOS or others
        return 'avfoundation'


def build_capture_options(raw_config: Optional[Dict], backend: str) -> Dict[str, str]:
    """Translate a camera config blob into PyAV input options"""
    raw_config = raw_config or {}
    options: Dict[str, str] = {}

    width, height = (raw_config.get(key) for key in _SIZE_KEYS)
    if width and height:
        options['video_size'] = f"{int(width)}x{int(height)}"

    fps = raw_config.get(_FPS_KEY)
    if fps:
        options['framerate'] = str(fps)

    pixel_format = raw_config.get(_PIXEL_FORMAT_KEY)
    if pixel_format and backend == 'v4l2':
        fmt = PIXEL_FORMATS.get(str(pixel_format).lower())
        if fmt is not None:
            options['input_format'] = fmt
        else:
            logger.warning(f"Ignoring unknown pixel format '{pixel_format}'")

    return options


def list_available_cameras(max_index: int = 10) -> List[int]:
    """List capture device indices that open with the platform backend"""
    available_cameras = []
    if not IS_LINUX:
        # We cannot reliably enumerate here without FFmpeg CLI.
        return available_cameras

    for i in range(max_index):
        device_path = get_camera_device_path(i)
        if not os.path.exists(device_path):
            continue
        try:
            container = av.open(device_path, format='v4l2')
        except Exception as e:
            logger.debug(f"Could not open {device_path}: {e}")
            continue
        try:
            if container.streams.video:
                available_cameras.append(i)
        finally:
            container.close()

    return available_cameras
