import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .camera import CameraHandle
from .config import CameraConfig

logger = logging.getLogger(__name__)


class CameraRegistry:
    """Started camera handles, aligned index for index with the camera configs.

    Slots for disabled cameras (empty path) or cameras that failed to start
    hold None. The list is built once by start_all and only read afterwards,
    so lookups from subscriber threads need no locking.
    """

    def __init__(self, server, capture_factory: Callable = CameraHandle):
        self.server = server
        self.capture_factory = capture_factory
        self._configs: Tuple[CameraConfig, ...] = ()
        self._handles: Tuple = ()
        self._started = False

    def __len__(self):
        return len(self._handles)

    @property
    def configs(self) -> Tuple[CameraConfig, ...]:
        return self._configs

    @property
    def handles(self) -> Tuple:
        return self._handles

    def _start_camera(self, config: CameraConfig):
        logger.info(f"Starting camera '{config.name}' on {config.path}")
        if not config.enabled:
            return None

        try:
            handle = self.capture_factory(config.name, config.path, config.raw_config)
            started = handle.start()
        except Exception as e:
            logger.error(f"Error creating camera '{config.name}': {e}")
            return None
        if not started:
            logger.error(f"Camera '{config.name}' failed to start")
            return None

        sink = self.server.start_automatic_capture(handle)
        if config.stream_config is not None:
            sink.set_config(config.stream_config)
        return handle

    def start_all(self, cameras: Sequence[CameraConfig]) -> List[Optional[object]]:
        """Start every camera in config order"""
        if self._started:
            raise RuntimeError("cameras already started")
        self._started = True

        handles = []
        for config in cameras:
            handles.append(self._start_camera(config))
            logger.info(f"Added camera {len(handles)}")

        self._configs = tuple(cameras)
        self._handles = tuple(handles)
        started = sum(1 for handle in handles if handle is not None)
        logger.info(f"Started {started} of {len(handles)} cameras")
        return handles

    def resolve_by_index(self, index) -> Tuple[Optional[object], bool]:
        if isinstance(index, bool) or not isinstance(index, int):
            return None, False
        if index < 0 or index >= len(self._handles):
            return None, False
        handle = self._handles[index]
        return handle, handle is not None

    def resolve_by_name(self, name: str) -> Tuple[Optional[object], bool]:
        for index, config in enumerate(self._configs):
            if config.name == name:
                # First match wins even when that slot is empty
                return self.resolve_by_index(index)
        return None, False

    def stop_all(self):
        """Stop all cameras"""
        logger.info("Stopping all cameras...")
        for handle in self._handles:
            if handle is not None:
                handle.stop()
