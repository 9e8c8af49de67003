import os
import threading
import time
import logging
from typing import Optional, Dict, List

import av
from PIL import Image

from .utils import get_platform_backend, build_capture_options

logger = logging.getLogger(__name__)

# Delay before reopening a device that stopped delivering frames
REOPEN_DELAY = 1.0


class CameraHandle:
    """A started capture source reading one device with av (PyAV)"""

    def __init__(self, name: str, path: str, raw_config: Optional[Dict] = None):
        self.name = name
        self.path = path
        self.raw_config = dict(raw_config or {})
        self.is_running = False
        self.container = None
        self.video_stream = None
        self.frame_count = 0
        # Mock mode fields
        self.mock_mode = False
        self.mock_width = int(self.raw_config.get("width") or 320)
        self.mock_height = int(self.raw_config.get("height") or 240)

        self._frame: Optional[Image.Image] = None
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def __repr__(self):
        return f"CameraHandle({self.name!r}, {self.path!r})"

    def set_config(self, raw_config: Optional[Dict]):
        """Replace the camera settings; used on the next (re)open"""
        self.raw_config = dict(raw_config or {})

    def _option_attempts(self, input_format: str) -> List[Dict[str, str]]:
        options = build_capture_options(self.raw_config, input_format)
        # Many devices refuse forced formats. Loosen progressively.
        attempts = [options]
        if 'input_format' in options:
            attempts.append({k: v for k, v in options.items() if k != 'input_format'})
        if 'framerate' in options:
            attempts.append({k: v for k, v in options.items() if k == 'video_size'})
        attempts.append({})

        unique = []
        for opts in attempts:
            if opts not in unique:
                unique.append(opts)
        return unique

    def _open(self) -> bool:
        input_format = get_platform_backend()
        last_error: Optional[Exception] = None
        for opts in self._option_attempts(input_format):
            try:
                logger.debug(f"Opening {self.path} with {input_format}, options: {opts}")
                self.container = av.open(self.path, format=input_format, options=opts)
                self.video_stream = self.container.streams.video[0]
                self.video_stream.thread_type = 'AUTO'
                logger.info(f"Camera '{self.name}' opened with format {input_format} and options {opts}")
                return True
            except Exception as e:
                last_error = e
                self._close()
        logger.error(f"Failed to open camera '{self.name}' on {self.path}: {last_error}")
        return False

    def _close(self):
        if self.container:
            try:
                self.container.close()
            except Exception as e:
                logger.debug(f"Error closing camera '{self.name}': {e}")
            finally:
                self.container = None
                self.video_stream = None

    def start(self) -> bool:
        """Start camera capture"""
        if self.is_running:
            return True
        try:
            opened = self._open()
        except Exception as e:
            logger.error(f"Error starting camera '{self.name}': {e}")
            return False

        self.is_running = True
        if not opened:
            logger.warning(f"Camera '{self.name}': falling back to mock mode")
            self.mock_mode = True
            return True

        self._thread = threading.Thread(target=self._read_loop, name=f"camera-{self.name}", daemon=True)
        self._thread.start()
        return True

    def _read_loop(self):
        """Keep the latest frame; reopen the device if it drops out"""
        while self.is_running:
            if self.container is None:
                time.sleep(REOPEN_DELAY)
                if not self.is_running or not self._open():
                    continue
            try:
                for frame in self.container.decode(self.video_stream):
                    image = frame.to_image()
                    with self._lock:
                        self._frame = image
                        self.frame_count += 1
                    if not self.is_running:
                        break
                else:
                    # Stream ended; treat as a disconnect
                    self._close()
            except Exception as e:
                if self.is_running:
                    logger.warning(f"Camera '{self.name}' read failed, reopening: {e}")
                self._close()

    def stop(self):
        """Stop camera capture"""
        self.is_running = False
        self._close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None
        logger.info(f"Camera '{self.name}' stopped")

    def get_frame(self) -> Optional[Image.Image]:
        """Return the most recent frame"""
        if not self.is_running:
            return None

        if self.mock_mode:
            # Random RGB image using os.urandom to avoid numpy dependency
            num_bytes = self.mock_width * self.mock_height * 3
            return Image.frombytes('RGB', (self.mock_width, self.mock_height), os.urandom(num_bytes))

        with self._lock:
            return self._frame
