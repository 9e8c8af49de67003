import time
import logging
from typing import Callable, NamedTuple, Optional

from .alias import AliasManager, CommandAliasManager
from .bus import SignalBus
from .camera import CameraHandle
from .config import Config
from .registry import CameraRegistry
from .stream import CameraServer
from .switched import SwitchedCameraController
from .utils import should_stop
from .zone import ZoneRouter

logger = logging.getLogger(__name__)


class RouterContext(NamedTuple):
    """Everything the controllers share, built once at startup"""
    config: Config
    bus: SignalBus
    server: CameraServer
    registry: CameraRegistry


class Application:
    """Starts cameras, switched cameras and zone routing for one config"""

    def __init__(self, config: Config, bus: Optional[SignalBus] = None,
                 server: Optional[CameraServer] = None,
                 alias_manager: Optional[AliasManager] = None,
                 capture_factory: Callable = CameraHandle):
        bus = bus if bus is not None else SignalBus()
        server = server if server is not None else CameraServer()
        registry = CameraRegistry(server, capture_factory)
        self.context = RouterContext(config, bus, server, registry)

        if alias_manager is None:
            alias_manager = CommandAliasManager(use_sudo=config.routing.use_sudo)
        self.switched = SwitchedCameraController(self.context)
        self.router = ZoneRouter(self.context, alias_manager, config.routing)
        self.is_running = False

    def start(self):
        config = self.context.config
        if config.server_mode:
            logger.info("Setting up NetworkTables server")
        else:
            logger.info(f"Setting up NetworkTables client for team {config.team}")

        self.context.registry.start_all(config.cameras)
        self.switched.start(config.switched_cameras)
        self.router.link_initial()
        self.router.start()
        self.is_running = True

    def stop(self):
        logger.info("Stopping camera routing...")
        self.is_running = False
        self.router.stop()
        self.switched.stop()
        self.context.registry.stop_all()

    def run(self, duration: Optional[float] = None):
        """Run until interrupted or for a fixed duration"""
        try:
            self.start()
            if duration:
                logger.info(f"Routing cameras for {duration} seconds...")
            else:
                logger.info("Routing cameras continuously. Press Ctrl+C to stop...")

            start_time = time.time()
            while not should_stop(start_time, duration):
                time.sleep(0.1 if duration else 1.0)

        except KeyboardInterrupt:
            logger.info("Received interrupt signal")
        finally:
            self.stop()
