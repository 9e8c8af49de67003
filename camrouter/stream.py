import io
import threading
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 80

STREAM_PREFIX = "serve_"


def automatic_stream_name(camera_name: str, taken) -> str:
    """Stream name for a started camera, suffixed when the name is already taken"""
    name = f"{STREAM_PREFIX}{camera_name}"
    suffix = 1
    while name in taken:
        suffix += 1
        name = f"{STREAM_PREFIX}{camera_name}_{suffix}"
    return name


class StreamSink:
    """A named stream endpoint serving frames from one source at a time"""

    def __init__(self, name: str, switched: bool = False):
        self.name = name
        self.switched = switched
        self.stream_config: Dict = {}
        self.frame_count = 0
        self._source = None
        self._lock = threading.Lock()

    def __repr__(self):
        return f"StreamSink({self.name!r}, source={self.source!r})"

    @property
    def source(self):
        with self._lock:
            return self._source

    def set_source(self, handle):
        with self._lock:
            changed = handle is not self._source
            self._source = handle
        if changed:
            logger.info(f"Stream '{self.name}' now serving {getattr(handle, 'name', handle)!r}")

    def set_config(self, stream_config: Optional[Dict]):
        self.stream_config = dict(stream_config or {})
        logger.debug(f"Stream '{self.name}' config: {self.stream_config}")

    @property
    def quality(self) -> int:
        quality = self.stream_config.get("compression")
        if quality is None or int(quality) < 0:
            return DEFAULT_QUALITY
        return max(1, min(100, int(quality)))

    def get_frame(self) -> Optional[Image.Image]:
        """Frame from the current source, scaled to the stream size if configured"""
        source = self.source
        if source is None:
            return None
        frame = source.get_frame()
        if frame is None:
            return None

        width = self.stream_config.get("width")
        height = self.stream_config.get("height")
        if width and height and frame.size != (int(width), int(height)):
            frame = frame.resize((int(width), int(height)))
        return frame

    def encode_jpeg(self) -> Optional[bytes]:
        frame = self.get_frame()
        if frame is None:
            return None
        buffer = io.BytesIO()
        frame.convert('RGB').save(buffer, 'JPEG', quality=self.quality)
        return buffer.getvalue()

    def save_snapshot(self, output_dir: str) -> Optional[str]:
        """Save the current frame with a timestamp using Pillow"""
        frame = self.get_frame()
        if frame is None:
            return None

        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        safe_name = self.name.replace(" ", "_").replace(":", "_")
        filepath = directory / f"{safe_name}_{timestamp}_{self.frame_count:06d}.jpg"

        frame.convert('RGB').save(str(filepath), 'JPEG', quality=self.quality, optimize=True)
        self.frame_count += 1
        return str(filepath)


class CameraServer:
    """Keeps one sink per started camera plus the switched sinks"""

    def __init__(self):
        self._sinks: Dict[str, StreamSink] = {}
        self._lock = threading.Lock()

    def _add(self, sink: StreamSink) -> StreamSink:
        with self._lock:
            if sink.name in self._sinks:
                raise ValueError(f"stream '{sink.name}' already exists")
            self._sinks[sink.name] = sink
        return sink

    def start_automatic_capture(self, handle) -> StreamSink:
        with self._lock:
            name = automatic_stream_name(handle.name, self._sinks)
        sink = self._add(StreamSink(name))
        sink.set_source(handle)
        return sink

    def add_switched_camera(self, name: str) -> StreamSink:
        return self._add(StreamSink(name, switched=True))

    def get_sink(self, name: str) -> Optional[StreamSink]:
        with self._lock:
            return self._sinks.get(name)

    @property
    def sinks(self) -> Dict[str, StreamSink]:
        with self._lock:
            return dict(self._sinks)
