import math
import threading
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, NamedTuple, Optional, Tuple

from .alias import AliasManager
from .config import RoutingSettings
from .errors import DeviceOpError
from .utils import get_camera_device_path

logger = logging.getLogger(__name__)

FRONT_CAM = 2
BACK_RIGHT_CAM = 0
BACK_LEFT_CAM = 4

# zone -> (target right, target left)
ZONE_RULES: Dict[int, Tuple[int, int]] = {
    1: (FRONT_CAM, BACK_LEFT_CAM),
    2: (BACK_RIGHT_CAM, FRONT_CAM),
    3: (BACK_LEFT_CAM, BACK_RIGHT_CAM),
}

# Calibration zone, checked before the rule table
OVERRIDE_ZONE = 50
OVERRIDE_TARGETS = (12, 10)

LEFT = "left"
RIGHT = "right"


@dataclass
class RoutingState:
    current_left: int
    current_right: int
    target_left: int
    target_right: int
    last_zone: float = 0.0


class Remap(NamedTuple):
    slot: str
    previous: int
    target: int
    applied: bool


class ZoneRouter:
    """Polls the zone signal and keeps the left/right aliases on the right devices.

    Targets come from the zone: the override zone forces fixed devices,
    zones in the rule table select a (right, left) pair and any other zone
    keeps the previous targets. A tick that would put both slots on the
    same device does nothing. Otherwise each slot whose target differs from
    its current device is remapped on its own.

    By default a slot's current device only changes once its alias was
    created, so a failed remap is retried on the next tick. With
    ``commit_failed_remaps`` the target is recorded even when the alias
    command fails.
    """

    def __init__(self, context, alias_manager: AliasManager,
                 settings: Optional[RoutingSettings] = None,
                 rules: Optional[Dict[int, Tuple[int, int]]] = None):
        self.bus = context.bus
        self.alias_manager = alias_manager
        self.settings = settings or RoutingSettings()
        self.rules = dict(ZONE_RULES if rules is None else rules)
        self._state = RoutingState(
            current_left=self.settings.initial_left,
            current_right=self.settings.initial_right,
            target_left=self.settings.initial_left,
            target_right=self.settings.initial_right,
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> RoutingState:
        return replace(self._state)

    def _alias_path(self, slot: str) -> str:
        return self.settings.left_alias if slot == LEFT else self.settings.right_alias

    def _link(self, slot: str, device: int) -> bool:
        """Point a slot's alias at a device; remove and create run as one step"""
        alias_path = self._alias_path(slot)
        target_path = get_camera_device_path(device)
        try:
            self.alias_manager.remove_alias(alias_path)
        except DeviceOpError as e:
            logger.warning(f"Could not remove {slot} alias: {e}")
        try:
            self.alias_manager.create_alias(target_path, alias_path)
        except DeviceOpError as e:
            logger.warning(f"Could not link {slot} alias to {target_path}: {e}")
            return False
        return True

    def link_initial(self):
        """Create both aliases for the starting devices"""
        self._link(LEFT, self._state.current_left)
        self._link(RIGHT, self._state.current_right)

    def read_zone(self) -> float:
        return self.bus.get_number(self.settings.zone_key, 0)

    def select_targets(self, zone: float) -> Tuple[int, int]:
        """Return (target left, target right) for a zone reading"""
        if zone == OVERRIDE_ZONE:
            right, left = OVERRIDE_TARGETS
            return left, right
        try:
            rule = self.rules.get(int(zone)) if math.isfinite(zone) else None
        except OverflowError:
            rule = None
        if rule is None:
            return self._state.target_left, self._state.target_right
        right, left = rule
        return left, right

    def _remap(self, slot: str, current: int, target: int) -> Remap:
        logger.info(f"Remapping {slot} camera from device {current} to {target}")
        applied = self._link(slot, target)
        if applied or self.settings.commit_failed_remaps:
            setattr(self._state, f"current_{slot}", target)
        return Remap(slot, current, target, applied)

    def tick(self) -> List[Remap]:
        """Run one routing step and return the remaps it attempted"""
        zone = self.read_zone()
        self._state.last_zone = zone

        target_left, target_right = self.select_targets(zone)
        self._state.target_left = target_left
        self._state.target_right = target_right

        if target_left == target_right:
            logger.debug(f"Zone {zone}: both slots target device {target_left}, skipping")
            return []

        remaps = []
        if target_left != self._state.current_left:
            remaps.append(self._remap(LEFT, self._state.current_left, target_left))
        if target_right != self._state.current_right:
            remaps.append(self._remap(RIGHT, self._state.current_right, target_right))
        return remaps

    def run(self, stop_event: Optional[threading.Event] = None):
        """Tick until the stop event is set"""
        stop_event = stop_event or self._stop_event
        interval = self.settings.tick_interval
        logger.info(f"Zone routing started on '{self.settings.zone_key}' every {interval}s")

        while not stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Zone routing tick failed")
            if stop_event.wait(interval):
                break
        logger.info("Zone routing stopped")

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, args=(self._stop_event,),
                                         name="zone-router", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 2.0):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
