import math
import threading
import logging
from typing import Dict, List, Sequence

from .config import SwitchedCameraConfig
from .errors import ResolutionError
from .stream import StreamSink

logger = logging.getLogger(__name__)


class SwitchedCameraController:
    """Points each switched sink at the camera selected by its signal key.

    Every switched camera gets its own subscription and consumer thread, so
    updates for one key are applied in order and never touch another
    camera's sink.
    """

    def __init__(self, context):
        self.registry = context.registry
        self.bus = context.bus
        self.server = context.server
        self.sinks: Dict[str, StreamSink] = {}
        self._subscriptions = []
        self._threads: List[threading.Thread] = []

    def handle_value(self, sink: StreamSink, value) -> bool:
        """Apply one signal value to a sink. Returns True if the source changed."""
        # bool is an int subclass but never a camera selector
        if isinstance(value, bool):
            handle, ok = None, False
        elif isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                handle, ok = None, False
            else:
                handle, ok = self.registry.resolve_by_index(int(value))
        elif isinstance(value, str):
            handle, ok = self.registry.resolve_by_name(value)
        else:
            handle, ok = None, False

        if not ok:
            logger.debug(str(ResolutionError(value, f"switched camera '{sink.name}'")))
            return False

        sink.set_source(handle)
        return True

    def _consume(self, sink: StreamSink, subscription):
        while True:
            event = subscription.get()
            if event is None:
                break
            try:
                self.handle_value(sink, event.value)
            except Exception:
                logger.exception(f"Switched camera '{sink.name}' failed to apply {event.value!r}")
        logger.debug(f"Switched camera '{sink.name}' listener stopped")

    def start_camera(self, config: SwitchedCameraConfig) -> StreamSink:
        """Start running the switched camera"""
        logger.info(f"Starting switched camera '{config.name}' on {config.key}")
        sink = self.server.add_switched_camera(config.name)
        subscription = self.bus.subscribe(config.key)

        thread = threading.Thread(
            target=self._consume,
            args=(sink, subscription),
            name=f"switched-{config.name}",
            daemon=True
        )
        thread.start()

        self.sinks[config.name] = sink
        self._subscriptions.append(subscription)
        self._threads.append(thread)
        return sink

    def start(self, configs: Sequence[SwitchedCameraConfig]):
        for config in configs:
            self.start_camera(config)
        logger.info(f"Started {len(self._threads)} switched camera listeners")

    def stop(self, timeout: float = 2.0):
        for subscription in self._subscriptions:
            self.bus.unsubscribe(subscription)
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._subscriptions = []
        self._threads = []
