"""Shared pytest fixtures and fakes for the camrouter tests."""

import sys
from pathlib import Path

import pytest
from PIL import Image

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from camrouter.alias import AliasManager
from camrouter.app import RouterContext
from camrouter.bus import SignalBus
from camrouter.config import CameraConfig, Config
from camrouter.errors import DeviceOpError
from camrouter.registry import CameraRegistry
from camrouter.stream import CameraServer


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a capture device"
    )


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require a capture device",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


class FakeHandle:
    """Capture handle that serves a solid colour frame"""

    def __init__(self, name, path, raw_config=None, start_ok=True):
        self.name = name
        self.path = path
        self.raw_config = raw_config or {}
        self.start_ok = start_ok
        self.is_running = False
        self.frame = Image.new("RGB", (64, 48), (200, 20, 20))

    def __repr__(self):
        return f"FakeHandle({self.name!r})"

    def start(self):
        self.is_running = self.start_ok
        return self.start_ok

    def stop(self):
        self.is_running = False

    def get_frame(self):
        return self.frame if self.is_running else None


class RecordingAliasManager(AliasManager):
    """Records alias operations; fails for any alias listed in fail_create/fail_remove"""

    def __init__(self):
        self.calls = []
        self.links = {}
        self.fail_create = set()
        self.fail_remove = set()

    def remove_alias(self, alias_path):
        self.calls.append(("remove", alias_path))
        if alias_path in self.fail_remove:
            raise DeviceOpError(alias_path, "remove failed")
        self.links.pop(alias_path, None)

    def create_alias(self, target_path, alias_path):
        self.calls.append(("create", target_path, alias_path))
        if alias_path in self.fail_create:
            raise DeviceOpError(alias_path, "create failed")
        self.links[alias_path] = target_path

    @property
    def creates(self):
        return [call for call in self.calls if call[0] == "create"]


def camera(name, path=None, **extra):
    path = f"/dev/{name.lower()}" if path is None else path
    raw = dict(extra, name=name, path=path)
    return CameraConfig(name=name, path=path, raw_config=raw, stream_config=extra.get("stream"))


@pytest.fixture
def bus():
    return SignalBus()


@pytest.fixture
def server():
    return CameraServer()


@pytest.fixture
def aliases():
    return RecordingAliasManager()


@pytest.fixture
def cameras():
    return (camera("Back"), camera("Disabled", path=""), camera("Front"), camera("Side"))


@pytest.fixture
def context(bus, server, cameras):
    config = Config(team=8179, cameras=cameras)
    registry = CameraRegistry(server, capture_factory=FakeHandle)
    registry.start_all(config.cameras)
    return RouterContext(config, bus, server, registry)
