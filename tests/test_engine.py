"""Tests for the concurrent scan engine."""

import threading
import time
from ipaddress import IPv4Address

import pytest
from scapy.all import LLC, STP, Dot3

from arpsweep.core.exceptions import ArpSweepError, CaptureError
from arpsweep.discovery.capture import ReplayCaptureHandle
from arpsweep.discovery.engine import ArpScanner, ScanState, scan
from arpsweep.discovery.frames import build_reply, build_request, parse_request
from arpsweep.discovery.models import MacAddress
from arpsweep.discovery.targets import enumerate_targets

LOCAL_IP = "192.168.1.10"
LOCAL_MAC = "02:42:AC:11:00:02"


def reply(ip: str, mac: str, target_ip: str = LOCAL_IP) -> bytes:
    return build_reply(mac, ip, LOCAL_MAC, target_ip)


def make_handle(frames=()) -> ReplayCaptureHandle:
    return ReplayCaptureHandle(frames, LOCAL_IP, LOCAL_MAC)


class FailingHandle(ReplayCaptureHandle):
    """Transmit fails after a number of frames."""

    def __init__(self, fail_after: int):
        super().__init__([], LOCAL_IP, LOCAL_MAC)
        self.fail_after = fail_after

    def transmit(self, frame: bytes) -> None:
        if len(self.sent) >= self.fail_after:
            raise CaptureError("Transmit failed", "network is down")
        super().transmit(frame)


class SerialOnlyHandle(ReplayCaptureHandle):
    """Flags any overlap between transmit and receive calls."""

    concurrent_safe = False

    def __init__(self, frames):
        super().__init__(frames, LOCAL_IP, LOCAL_MAC)
        self._busy = threading.Lock()
        self.overlaps = 0

    def _enter(self):
        if not self._busy.acquire(blocking=False):
            self.overlaps += 1
            self._busy.acquire()

    def transmit(self, frame: bytes) -> None:
        self._enter()
        try:
            time.sleep(0.0005)
            super().transmit(frame)
        finally:
            self._busy.release()

    def receive(self, timeout: float) -> bytes | None:
        self._enter()
        try:
            return super().receive(timeout)
        finally:
            self._busy.release()


class TestScan:
    """End-to-end behaviour of scan()."""

    def test_slash_30_scenario(self):
        handle = make_handle([reply("192.168.1.1", "aa:bb:cc:dd:ee:ff")])
        result = scan(enumerate_targets("192.168.1.0/30"), handle, duration=0.2)

        assert {(str(d.ip), str(d.mac)) for d in result} == {("192.168.1.1", "AA:BB:CC:DD:EE:FF")}
        assert IPv4Address("192.168.1.2") not in {d.ip for d in result}

    def test_requests_sent_for_every_target(self):
        handle = make_handle()
        scan(enumerate_targets("192.168.1.0/28"), handle, duration=0.3, batch_size=4, inter_batch_timeout=0.001)

        targets = [parse_request(f).target_ip for f in handle.sent]
        assert targets == list(enumerate_targets("192.168.1.0/28"))
        request = parse_request(handle.sent[0])
        assert request.sender_ip == IPv4Address(LOCAL_IP)
        assert request.sender_mac == MacAddress.parse(LOCAL_MAC)

    def test_first_reply_wins(self):
        frames = [
            reply("192.168.1.1", "aa:bb:cc:dd:ee:01"),
            reply("192.168.1.1", "aa:bb:cc:dd:ee:02"),
            reply("192.168.1.2", "aa:bb:cc:dd:ee:03"),
        ]
        result = scan([], make_handle(frames), duration=0.1)
        by_ip = {str(d.ip): str(d.mac) for d in result}
        assert by_ip == {"192.168.1.1": "AA:BB:CC:DD:EE:01", "192.168.1.2": "AA:BB:CC:DD:EE:03"}

    def test_replay_is_idempotent(self):
        stream = [reply(f"192.168.1.{n}", f"aa:bb:cc:dd:ee:{n:02x}") for n in range(1, 6)]
        once = scan([], make_handle(stream), duration=0.1)
        twice = scan([], make_handle(stream * 2), duration=0.1)

        assert len(twice) == 5
        assert {(d.ip, d.mac) for d in once} == {(d.ip, d.mac) for d in twice}

    def test_irrelevant_frames_are_ignored(self):
        frames = [
            b"\x00\x01garbage",
            build_request("aa:bb:cc:dd:ee:ff", "192.168.1.1", LOCAL_IP),
            reply("192.168.1.3", "aa:bb:cc:dd:ee:ff", target_ip="192.168.1.99"),
            reply("192.168.1.4", "aa:bb:cc:dd:ee:04"),
        ]
        scanner = ArpScanner(make_handle(frames), duration=0.1)
        result = scanner.run([])

        assert {str(d.ip) for d in result} == {"192.168.1.4"}
        assert scanner.dropped_frames == 3

    def test_spanning_tree_frame_does_not_stop_listener(self):
        bpdu = bytes(Dot3(dst="01:80:c2:00:00:00", src="aa:bb:cc:dd:ee:ff") / LLC() / STP())
        scanner = ArpScanner(make_handle([bpdu, reply("192.168.1.1", "aa:bb:cc:dd:ee:ff")]), duration=0.1)
        result = scanner.run([])

        assert {str(d.ip) for d in result} == {"192.168.1.1"}
        assert scanner.dropped_frames == 1

    def test_discovered_at_is_relative(self):
        result = scan([], make_handle([reply("192.168.1.1", "aa:bb:cc:dd:ee:ff")]), duration=0.1)
        (discovery,) = result
        assert 0 <= discovery.discovered_at < 0.1

    def test_on_discovery_callback(self):
        seen = []
        frames = [reply("192.168.1.1", "aa:bb:cc:dd:ee:ff"), reply("192.168.1.1", "aa:bb:cc:dd:ee:ff")]
        scan([], make_handle(frames), duration=0.1, on_discovery=seen.append)
        assert [str(d.ip) for d in seen] == ["192.168.1.1"]


class TestTiming:
    """The scan window bounds the run time in both directions."""

    def test_returns_within_duration_for_large_range(self):
        start = time.monotonic()
        scan(enumerate_targets("10.0.0.0/16"), make_handle(), duration=0.3, batch_size=32, inter_batch_timeout=0.01)
        elapsed = time.monotonic() - start
        assert elapsed < 0.3 + 0.5

    def test_large_range_is_cut_off(self):
        handle = make_handle()
        scan(enumerate_targets("10.0.0.0/16"), handle, duration=0.2, batch_size=32, inter_batch_timeout=0.01)
        assert 0 < len(handle.sent) < 65534

    def test_keeps_listening_after_sending(self):
        start = time.monotonic()
        scan(enumerate_targets("192.168.1.0/30"), make_handle(), duration=0.3)
        assert time.monotonic() - start >= 0.3

    def test_late_reply_still_captured(self):
        class DelayedHandle(ReplayCaptureHandle):
            def receive(self, timeout):
                if time.monotonic() - created < 0.15:
                    time.sleep(timeout)
                    return None
                return super().receive(timeout)

        created = time.monotonic()
        handle = DelayedHandle([reply("192.168.1.2", "aa:bb:cc:dd:ee:02")], LOCAL_IP, LOCAL_MAC)
        result = scan(enumerate_targets("192.168.1.0/30"), handle, duration=0.4)
        assert {str(d.ip) for d in result} == {"192.168.1.2"}

    def test_drain_reads_pick_up_queued_replies(self):
        class ClosedWindowHandle(ReplayCaptureHandle):
            def receive(self, timeout):
                if timeout > 0:
                    time.sleep(timeout)
                    return None
                return super().receive(timeout)

        handle = ClosedWindowHandle([reply("192.168.1.1", "aa:bb:cc:dd:ee:ff")], LOCAL_IP, LOCAL_MAC)
        result = scan([], handle, duration=0.05, drain_reads=3)
        assert len(result) == 1


class TestScannerState:
    """State machine and failure handling."""

    def test_states(self):
        scanner = ArpScanner(make_handle(), duration=0.05)
        assert scanner.state is ScanState.IDLE
        scanner.run(enumerate_targets("192.168.1.0/30"))
        assert scanner.state is ScanState.DONE

    def test_single_use(self):
        scanner = ArpScanner(make_handle(), duration=0.05)
        scanner.run([])
        with pytest.raises(ArpSweepError):
            scanner.run([])

    def test_transmit_failure_aborts(self):
        scanner = ArpScanner(FailingHandle(fail_after=3), duration=1.0)
        start = time.monotonic()
        with pytest.raises(CaptureError):
            scanner.run(enumerate_targets("192.168.1.0/24"))
        assert time.monotonic() - start < 1.0
        assert scanner.state is ScanState.DONE

    def test_serialises_unsafe_handle(self):
        frames = [reply(f"192.168.1.{n}", f"aa:bb:cc:dd:ee:{n:02x}") for n in range(1, 20)]
        handle = SerialOnlyHandle(frames)
        result = scan(enumerate_targets("192.168.1.0/27"), handle, duration=0.3, inter_batch_timeout=0.001)
        assert handle.overlaps == 0
        assert len(result) == 19

    @pytest.mark.parametrize(
        "kwargs",
        [{"duration": 0}, {"batch_size": 0}, {"poll_interval": 0}],
    )
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            ArpScanner(make_handle(), **kwargs)
