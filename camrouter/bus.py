import math
import queue
import threading
import logging
from typing import Any, Dict, List, NamedTuple, Optional

logger = logging.getLogger(__name__)


class SignalEvent(NamedTuple):
    key: str
    value: Any
    immediate: bool = False


class Subscription:
    """Queue of change events for one key, consumed by a single reader"""

    def __init__(self, key: str):
        self.key = key
        self.closed = False
        self._queue: "queue.Queue[Optional[SignalEvent]]" = queue.Queue()

    def _deliver(self, event: SignalEvent):
        if not self.closed:
            self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Optional[SignalEvent]:
        """Next event, or None when closed or the timeout expires"""
        if self.closed and self._queue.empty():
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self):
        if not self.closed:
            self.closed = True
            # Wake a blocked reader
            self._queue.put(None)


class SignalBus:
    """In-process key/value store that notifies subscribers on every put"""

    def __init__(self):
        self._values: Dict[str, Any] = {}
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: Any):
        with self._lock:
            self._values[key] = value
            # Deliver under the lock so every subscriber sees puts in order
            event = SignalEvent(key, value)
            for subscription in self._subscribers.get(key, ()):
                subscription._deliver(event)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def get_number(self, key: str, default: float = 0.0) -> float:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            if value is not None:
                logger.debug(f"Signal '{key}' is not a number: {value!r}")
            return default
        if isinstance(value, float) and math.isnan(value):
            return default
        return value

    def subscribe(self, key: str) -> Subscription:
        """Subscribe to a key; the current value, if any, is delivered first"""
        subscription = Subscription(key)
        with self._lock:
            self._subscribers.setdefault(key, []).append(subscription)
            if key in self._values:
                subscription._deliver(SignalEvent(key, self._values[key], immediate=True))
        return subscription

    def unsubscribe(self, subscription: Subscription):
        with self._lock:
            subscribers = self._subscribers.get(subscription.key, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
        subscription.close()
