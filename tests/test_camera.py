import os
from unittest import mock

import pytest

from camrouter.camera import CameraHandle
from camrouter.utils import build_capture_options, get_camera_device_path, get_platform_backend, get_setting


def test_build_capture_options():
    raw = {"width": 320, "height": 240.0, "fps": 30, "pixel format": "MJPEG"}
    assert build_capture_options(raw, "v4l2") == {
        "video_size": "320x240",
        "framerate": "30",
        "input_format": "mjpeg",
    }


def test_build_capture_options_partial():
    assert build_capture_options(None, "v4l2") == {}
    assert build_capture_options({"width": 320}, "v4l2") == {}
    assert build_capture_options({"pixel format": "yuyv"}, "avfoundation") == {}
    assert build_capture_options({"pixel format": "unknown"}, "v4l2") == {}


def test_get_setting_precedence():
    assert get_setting(1, 2, 3) == 1
    assert get_setting(None, 2, 3) == 2
    assert get_setting(None, None, 3) == 3


def test_device_path():
    if os.name != "nt":
        assert get_camera_device_path(4) == "/dev/video4"


def test_option_attempts_loosen_progressively():
    handle = CameraHandle("Front", "/dev/video2", {"width": 320, "height": 240, "fps": 30, "pixel format": "mjpeg"})
    attempts = handle._option_attempts("v4l2")
    assert attempts[0] == {"video_size": "320x240", "framerate": "30", "input_format": "mjpeg"}
    assert attempts[-1] == {}
    assert {"video_size": "320x240"} in attempts
    assert len(attempts) == len({tuple(sorted(a.items())) for a in attempts})


@mock.patch("camrouter.camera.av.open", side_effect=OSError("No such device"))
def test_unopenable_device_falls_back_to_mock(av_open):
    handle = CameraHandle("Front", "/dev/video99", {"width": 64, "height": 48})

    assert handle.start()
    assert handle.mock_mode
    assert av_open.call_count == len(handle._option_attempts(get_platform_backend()))
    assert handle.get_frame().size == (64, 48)

    handle.stop()
    assert handle.get_frame() is None


def test_not_started_has_no_frame():
    handle = CameraHandle("Front", "/dev/video2")
    assert handle.get_frame() is None


def test_set_config():
    handle = CameraHandle("Front", "/dev/video2", {"fps": 30})
    handle.set_config({"fps": 15})
    assert handle.raw_config == {"fps": 15}


@pytest.mark.hardware
def test_real_device_delivers_frames():
    import time

    handle = CameraHandle("video0", "/dev/video0", {"width": 320, "height": 240})
    assert handle.start()
    try:
        assert not handle.mock_mode
        deadline = time.time() + 5
        while handle.get_frame() is None and time.time() < deadline:
            time.sleep(0.05)
        assert handle.get_frame() is not None
    finally:
        handle.stop()
