"""Tests de los adaptadores de cámara."""
import sys
import time

import numpy as np
import pytest

from platelog.domain.errors import DeviceBusy, DeviceNotFound, PermissionDenied, Unsupported
from platelog.infrastructure.Camera import opencv_camera_stream
from platelog.infrastructure.Camera.fake_camera_stream import FakeCameraStream
from platelog.infrastructure.Camera.opencv_camera_stream import OpenCVCameraStream
from platelog.infrastructure.Camera.sysfs_torch import SysfsTorch

JPEG_MAGIC = b"\xff\xd8"


class FakeCapture:
    def __init__(self, opened=True, image=None):
        self.opened = opened
        self.image = image if image is not None else np.zeros((48, 64, 3), dtype=np.uint8)
        self.props = {}
        self.released = False

    def isOpened(self):
        return self.opened

    def read(self):
        time.sleep(0.005)
        return True, self.image

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def release(self):
        self.released = True


@pytest.fixture
def no_device_check(monkeypatch):
    monkeypatch.setattr(OpenCVCameraStream, "_check_device_node", staticmethod(lambda source: None))


def patch_capture(monkeypatch, capture):
    opened = []

    def factory(source):
        opened.append(source)
        return capture

    monkeypatch.setattr(opencv_camera_stream.cv2, "VideoCapture", factory)
    return opened


def wait_for_frame(stream, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        frame = stream.capture_frame()
        if frame is not None:
            return frame
        time.sleep(0.01)
    return None


# ==========================================================
# FakeCameraStream
# ==========================================================
def test_fake_stream_lifecycle():
    camera = FakeCameraStream()
    assert camera.capture_frame() is None

    camera.start("environment", 320, 240)
    frame = camera.capture_frame()

    assert camera.is_active
    assert frame.data.startswith(JPEG_MAGIC)
    assert (frame.width, frame.height) == (320, 240)
    assert frame.source == "fake"

    camera.stop()
    camera.stop()
    assert not camera.is_active
    assert camera.capture_frame() is None


def test_fake_stream_start_twice_is_noop():
    camera = FakeCameraStream()
    camera.start("environment")
    camera.start("user")
    assert camera.start_calls == 1
    assert camera.facing_mode == "environment"


def test_fake_stream_failure_and_torch():
    failing = FakeCameraStream(fail_with=PermissionDenied("denied"))
    with pytest.raises(PermissionDenied):
        failing.start()
    assert not failing.is_active

    camera = FakeCameraStream(torch_supported=True)
    assert camera.set_torch(True) is False
    camera.start()
    assert camera.set_torch(True) is True
    assert camera.torch_on
    camera.stop()
    assert camera.torch_on is False


# ==========================================================
# OpenCVCameraStream
# ==========================================================
def test_opencv_stream_captures_latest_frame(monkeypatch, no_device_check):
    capture = FakeCapture()
    opened = patch_capture(monkeypatch, capture)
    camera = OpenCVCameraStream({"environment": "0"})

    camera.start("environment", 1280, 720)
    try:
        frame = wait_for_frame(camera)
        assert opened == [0]
        assert capture.props[opencv_camera_stream.cv2.CAP_PROP_FRAME_WIDTH] == 1280
        assert frame.data.startswith(JPEG_MAGIC)
        assert (frame.width, frame.height) == (64, 48)

        camera.start("environment")
        assert opened == [0]
    finally:
        camera.stop()

    assert capture.released
    assert not camera.is_active
    assert camera.capture_frame() is None


def test_opencv_stream_unknown_facing_mode():
    camera = OpenCVCameraStream({"environment": "0"})
    with pytest.raises(DeviceNotFound):
        camera.start("user")


def test_opencv_local_device_that_fails_to_open_is_busy(monkeypatch, no_device_check):
    capture = FakeCapture(opened=False)
    patch_capture(monkeypatch, capture)

    with pytest.raises(DeviceBusy) as excinfo:
        OpenCVCameraStream({"environment": "2"}).start()
    assert excinfo.value.reason == "device_busy"
    assert capture.released


def test_opencv_stream_url_that_fails_to_open_is_not_found(monkeypatch):
    patch_capture(monkeypatch, FakeCapture(opened=False))
    with pytest.raises(DeviceNotFound):
        OpenCVCameraStream({"environment": "rtsp://10.0.0.5/stream"}).start()


def test_opencv_backend_error_is_unsupported(monkeypatch, no_device_check):
    def broken(source):
        raise opencv_camera_stream.cv2.error("backend not available")

    monkeypatch.setattr(opencv_camera_stream.cv2, "VideoCapture", broken)
    with pytest.raises(Unsupported):
        OpenCVCameraStream({"environment": "0"}).start()


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="nodos /dev solo en Linux")
def test_opencv_missing_device_node():
    with pytest.raises(DeviceNotFound):
        OpenCVCameraStream({"environment": "/dev/video-missing-987"}).start()


def test_opencv_stop_without_start_and_torch_when_idle():
    camera = OpenCVCameraStream({"environment": "0"})
    camera.stop()
    assert camera.set_torch(True) is False


def test_opencv_stop_turns_torch_off(monkeypatch, no_device_check, tmp_path):
    patch_capture(monkeypatch, FakeCapture())
    brightness = tmp_path / "brightness"
    brightness.write_text("0")
    camera = OpenCVCameraStream({"environment": "0"}, torch=SysfsTorch(str(brightness)))

    camera.start()
    assert camera.set_torch(True) is True
    assert brightness.read_text() == "1"
    camera.stop()
    assert brightness.read_text() == "0"


# ==========================================================
# SysfsTorch
# ==========================================================
def test_sysfs_torch_uses_max_brightness(tmp_path):
    (tmp_path / "max_brightness").write_text("255\n")
    brightness = tmp_path / "brightness"
    brightness.write_text("0")
    torch = SysfsTorch(str(brightness))

    assert torch.available
    assert torch.set(True) is True
    assert brightness.read_text() == "255"
    assert torch.set(False) is True
    assert brightness.read_text() == "0"


def test_sysfs_torch_missing_led(tmp_path):
    torch = SysfsTorch(str(tmp_path / "missing" / "brightness"))
    assert not torch.available
    assert torch.set(True) is False
