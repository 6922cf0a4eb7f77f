"""Concurrent ARP sweep: a sender and a listener sharing one capture handle."""

import contextlib
import logging
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from ipaddress import IPv4Address
from itertools import islice

from ..core.exceptions import ArpSweepError
from .capture import CaptureHandle
from .frames import build_request, parse_reply
from .models import Discovery

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """Lifecycle of one scan."""

    IDLE = "idle"
    SENDING = "sending"
    DRAINING = "draining"
    DONE = "done"


def _batches(targets: Iterable[IPv4Address], size: int) -> Iterator[list[IPv4Address]]:
    iterator = iter(targets)
    while batch := list(islice(iterator, size)):
        yield batch


class ArpScanner:
    """
    Single-use ARP sweep over a capture handle.

    The listener starts first and reads frames until ``duration`` has elapsed
    from scan start, however quickly the sender finishes. The sender walks
    the targets in batches, pausing between batches, and gives up on any
    targets left once the window has closed. The listener is the only writer
    of the discovery table; callers get a frozen snapshot once the scan is
    done.
    """

    def __init__(
        self,
        handle: CaptureHandle,
        duration: float = 2.0,
        batch_size: int = 32,
        inter_batch_timeout: float = 0.010,
        poll_interval: float = 0.010,
        drain_reads: int = 0,
        on_discovery: Callable[[Discovery], None] | None = None,
    ):
        if duration <= 0:
            raise ValueError("duration must be positive")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.handle = handle
        self.duration = duration
        self.batch_size = batch_size
        self.inter_batch_timeout = max(inter_batch_timeout, 0.0)
        self.poll_interval = poll_interval
        self.drain_reads = max(drain_reads, 0)
        self.on_discovery = on_discovery

        self.sent_count = 0
        self.dropped_frames = 0
        self._state = ScanState.IDLE
        self._discoveries: dict[IPv4Address, Discovery] = {}
        self._stop = threading.Event()
        self._listening = threading.Event()
        if getattr(handle, "concurrent_safe", False):
            self._io_lock: contextlib.AbstractContextManager = contextlib.nullcontext()
        else:
            self._io_lock = threading.Lock()

    @property
    def state(self) -> ScanState:
        return self._state

    def run(self, targets: Iterable[IPv4Address]) -> frozenset[Discovery]:
        """Sweep ``targets`` and return what answered within the window."""
        if self._state is not ScanState.IDLE:
            raise ArpSweepError("ArpScanner instances are single-use")

        start = time.monotonic()
        deadline = start + self.duration

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="arpsweep") as executor:
            listener = executor.submit(self._listen, start, deadline)
            try:
                self._listening.wait()
                self._state = ScanState.SENDING
                sender = executor.submit(self._send, targets, deadline)
                sender.result()
                self._state = ScanState.DRAINING
                listener.result()
            except BaseException:
                self._stop.set()
                self._state = ScanState.DONE
                raise

        self._state = ScanState.DONE
        logger.info(
            "Scan finished in %.2fs: %d sent, %d hosts, %d frames ignored",
            time.monotonic() - start,
            self.sent_count,
            len(self._discoveries),
            self.dropped_frames,
        )
        return frozenset(self._discoveries.values())

    def _send(self, targets: Iterable[IPv4Address], deadline: float) -> None:
        local_ip = self.handle.local_ip
        local_mac = self.handle.local_mac

        for batch in _batches(targets, self.batch_size):
            if self._stop.is_set() or time.monotonic() >= deadline:
                logger.debug("Scan window closed before all targets were sent")
                return
            for target in batch:
                frame = build_request(local_mac, local_ip, target)
                with self._io_lock:
                    self.handle.transmit(frame)
                self.sent_count += 1

            remaining = deadline - time.monotonic()
            if remaining > 0 and self.inter_batch_timeout:
                self._stop.wait(min(self.inter_batch_timeout, remaining))

        logger.debug("All %d requests sent", self.sent_count)

    def _listen(self, start: float, deadline: float) -> None:
        self._listening.set()
        logger.debug("Started listening for responses")

        try:
            while not self._stop.is_set():
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._receive_one(start, min(self.poll_interval, remaining))

            # Replies already queued on the handle when the window closed.
            if not self._stop.is_set():
                for _ in range(self.drain_reads):
                    self._receive_one(start, 0.0)
        except BaseException:
            self._stop.set()
            raise

    def _receive_one(self, start: float, timeout: float) -> None:
        with self._io_lock:
            frame = self.handle.receive(timeout)
        if frame is None:
            return

        reply = parse_reply(frame, self.handle.local_ip)
        if reply is None:
            self.dropped_frames += 1
            return
        if reply.sender_ip in self._discoveries:
            return

        discovery = Discovery(
            ip=reply.sender_ip,
            mac=reply.sender_mac,
            discovered_at=time.monotonic() - start,
        )
        self._discoveries[discovery.ip] = discovery
        if self.on_discovery is not None:
            self.on_discovery(discovery)


def scan(
    targets: Iterable[IPv4Address],
    capture_handle: CaptureHandle,
    duration: float = 2.0,
    batch_size: int = 32,
    inter_batch_timeout: float = 0.010,
    *,
    poll_interval: float = 0.010,
    drain_reads: int = 0,
    on_discovery: Callable[[Discovery], None] | None = None,
) -> frozenset[Discovery]:
    """
    Discover hosts answering ARP on ``capture_handle``.

    Args:
        targets: Addresses to request, in the order they should be sent
        capture_handle: Open handle; its ``local_ip``/``local_mac`` are the sender
        duration: Scan window in seconds, measured from scan start
        batch_size: Requests sent back-to-back before pausing
        inter_batch_timeout: Pause between batches in seconds
        poll_interval: Longest single receive wait in seconds
        drain_reads: Zero-timeout reads performed after the window closes
        on_discovery: Called from the listener for each newly seen host

    Returns:
        One Discovery per responding IP (first reply wins)
    """
    scanner = ArpScanner(
        capture_handle,
        duration=duration,
        batch_size=batch_size,
        inter_batch_timeout=inter_batch_timeout,
        poll_interval=poll_interval,
        drain_reads=drain_reads,
        on_discovery=on_discovery,
    )
    return scanner.run(targets)
