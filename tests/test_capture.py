import asyncio
import threading

import pytest
from mss.exception import ScreenShotError

from cord.capture import FrameCapturer
from cord.errors import (
    CaptureBusy,
    CaptureEnded,
    CaptureUnsupported,
    FrameNotReady,
    PermissionDenied,
)
from cord.observers.screen import Screen
from fakes import FakeSct, FakeShot


def capturer_for(sct, **kwargs):
    return FrameCapturer(backend=lambda: sct, **kwargs)


def test_capture_returns_jpeg_snapshot():
    sct = FakeSct()
    capturer = capturer_for(sct)
    capturer.start()
    snapshot = capturer.capture_frame()

    assert snapshot.data.startswith("data:image/jpeg;base64,")
    assert snapshot.jpeg_bytes()[:2] == b"\xff\xd8"
    assert (snapshot.width, snapshot.height) == (4, 3)
    capturer.stop()
    assert sct.closed


def test_second_start_is_busy():
    capturer = capturer_for(FakeSct())
    capturer.start()
    with pytest.raises(CaptureBusy):
        capturer.start()

    capturer.stop()
    capturer.stop()
    assert not capturer.is_capturing
    capturer.start()
    assert capturer.is_capturing


def test_frame_before_start_is_not_ready():
    capturer = capturer_for(FakeSct())
    with pytest.raises(FrameNotReady):
        capturer.capture_frame()


def test_empty_frame_is_not_ready():
    capturer = capturer_for(FakeSct(script=[FakeShot(), FakeShot(width=0, height=0)]))
    capturer.start()
    with pytest.raises(FrameNotReady):
        capturer.capture_frame()
    assert capturer.is_capturing


def test_backend_failure_is_unsupported():
    def broken():
        raise ScreenShotError("no display")

    with pytest.raises(CaptureUnsupported):
        FrameCapturer(backend=broken).start()


def test_no_monitors_is_unsupported():
    sct = FakeSct(monitors=[])
    with pytest.raises(CaptureUnsupported):
        capturer_for(sct).start()
    assert sct.closed


def test_refused_first_grab_is_permission_denied():
    sct = FakeSct(script=[ScreenShotError("denied")])
    capturer = capturer_for(sct)
    with pytest.raises(PermissionDenied):
        capturer.start()
    assert sct.closed
    assert not capturer.is_capturing


def test_out_of_range_monitor_falls_back_to_all():
    sct = FakeSct()
    stream = capturer_for(sct, monitor=7).start()
    assert stream.monitor is sct.monitors[0]


def test_stream_end_tears_down_once():
    ended = []
    sct = FakeSct(script=[FakeShot(), FakeShot(), ScreenShotError("gone")])
    capturer = capturer_for(sct, on_ended=lambda: ended.append(True))
    capturer.start()
    capturer.capture_frame()

    with pytest.raises(CaptureEnded):
        capturer.capture_frame()
    assert ended == [True]
    assert not capturer.is_capturing
    assert sct.closed

    with pytest.raises(FrameNotReady):
        capturer.capture_frame()
    assert ended == [True]


def test_screen_observer_grabs_off_the_loop_thread():
    class ThreadRecordingSct(FakeSct):
        def __init__(self):
            super().__init__()
            self.on_loop_thread = []

        def grab(self, monitor):
            self.on_loop_thread.append(threading.current_thread() is threading.main_thread())
            return super().grab(monitor)

    async def scenario():
        sct = ThreadRecordingSct()
        capturer = capturer_for(sct)
        capturer.start()
        screen = Screen(capturer, interval=0.01)
        snapshot = await asyncio.wait_for(screen.update_queue.get(), timeout=5)
        await screen.stop()
        return sct, snapshot

    sct, snapshot = asyncio.run(scenario())
    assert snapshot.width == 4
    # the first grab is the permission check in start(), made by the caller
    assert sct.on_loop_thread[0] is True
    assert sct.on_loop_thread[1:]
    assert not any(sct.on_loop_thread[1:])


def test_screen_observer_emits_snapshots_until_stream_ends():
    async def scenario():
        sct = FakeSct(script=[FakeShot(), FakeShot(fill=10), FakeShot(fill=20), ScreenShotError("gone")])
        capturer = capturer_for(sct)
        capturer.start()
        screen = Screen(capturer, interval=0.01)

        await asyncio.wait_for(screen.ended.wait(), timeout=5)
        first = await screen.get_update()
        second = await screen.get_update()
        assert first is not None and second is not None
        assert not first.same_screen(second)
        assert await screen.get_update() is None
        await screen.stop()

    asyncio.run(scenario())
