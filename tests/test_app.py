import time

import pytest

from camrouter.app import Application
from camrouter.config import Config, RoutingSettings, SwitchedCameraConfig
from camrouter.stream import CameraServer

from conftest import FakeHandle, RecordingAliasManager, camera


def wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def make_app(**routing):
    config = Config(
        team=8179,
        cameras=(camera("Back"), camera("Spare", path=""), camera("Front")),
        switched_cameras=(SwitchedCameraConfig("Driver", "/driver"),),
        routing=RoutingSettings(tick_interval=0.01, **routing),
    )
    aliases = RecordingAliasManager()
    return Application(config, alias_manager=aliases, capture_factory=FakeHandle), aliases


def test_start_routes_and_switches():
    app, aliases = make_app()
    app.start()
    try:
        assert app.is_running
        registry = app.context.registry
        assert len(registry) == 3
        assert registry.handles[1] is None

        # Initial aliases
        assert aliases.creates[:2] == [
            ("create", "/dev/video0", "/dev/leftCam"),
            ("create", "/dev/video1", "/dev/rightCam"),
        ]

        app.context.bus.put("/driver", "Front")
        driver = app.switched.sinks["Driver"]
        assert wait_for(lambda: driver.source is registry.handles[2])

        app.context.bus.put("Robot Zone", 1)
        assert wait_for(lambda: (app.router.state.current_left, app.router.state.current_right) == (4, 2))
        assert aliases.links == {"/dev/leftCam": "/dev/video4", "/dev/rightCam": "/dev/video2"}
    finally:
        app.stop()

    assert not app.is_running
    assert not any(h.is_running for h in app.context.registry.handles if h is not None)


def test_run_for_duration():
    app, aliases = make_app(initial_right=2)
    started = time.time()
    app.run(duration=0.2)
    assert time.time() - started < 2
    assert not app.is_running
    assert ("create", "/dev/video2", "/dev/rightCam") in aliases.creates


def test_failed_startup_stops_started_cameras():
    config = Config(
        team=8179,
        cameras=(camera("Back"), camera("Front")),
        switched_cameras=(SwitchedCameraConfig("Driver", "/driver"),),
        routing=RoutingSettings(tick_interval=0.01),
    )
    server = CameraServer()
    server.add_switched_camera("Driver")
    app = Application(config, server=server, alias_manager=RecordingAliasManager(),
                      capture_factory=FakeHandle)

    with pytest.raises(ValueError):
        app.run(duration=0.1)

    handles = app.context.registry.handles
    assert len(handles) == 2
    assert not any(h.is_running for h in handles)
    assert not app.is_running
