# cnproc_sentinel/probes/process.py
"""
Process Monitor
Receives proc connector frames, decodes them and hands each event to a callback.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cnproc_sentinel.errors import DecodeError, ReceiveError
from cnproc_sentinel.log import get_logger
from cnproc_sentinel.probes.codec import decode_event

logger = get_logger(__name__)


class ShutdownFlag:
    """
    Cancellation token for the listen loop.

    The signal handler is the only writer; ProcessMonitor.run() is the only
    reader, once per loop iteration. Setting it is a single attribute store.
    """

    def __init__(self):
        self._set = False

    def set(self):
        self._set = True

    def is_set(self):
        return self._set


class TerminationReason(Enum):
    REQUESTED_SHUTDOWN = "requested_shutdown"
    CHANNEL_CLOSED = "channel_closed"
    FAILED = "failed"


@dataclass(frozen=True)
class Termination:
    reason: TerminationReason
    error: Optional[ReceiveError] = None

    @property
    def ok(self):
        return self.reason is not TerminationReason.FAILED


class ProcessMonitor:
    """
    Netlink process connector monitor.

    Single-threaded: each event is passed to `on_event` before the next
    recv() is issued. There is no queue and no timeout on the receive.

    Shutdown is cooperative. The flag is checked before every receive, so a
    receive already in progress when it is set still gets its event
    dispatched.
    """

    def __init__(self, channel, on_event, shutdown=None):
        """
        Args:
            channel: object with receive_raw() -> bytes | None
            on_event: callable taking one ProcessEvent
            shutdown: ShutdownFlag; a private one is created if omitted
        """
        self.channel = channel
        self.on_event = on_event
        self.shutdown = shutdown or ShutdownFlag()

        self.received = 0
        self.dispatched = 0
        self.skipped = 0

    def run(self):
        """
        Listen until shutdown, channel close or a receive failure.

        Returns:
            Termination describing why the loop ended.
        """
        logger.info("Listening for process events... Ctrl+C to quit.")

        while True:
            if self.shutdown.is_set():
                return self._finish(Termination(TerminationReason.REQUESTED_SHUTDOWN))

            try:
                frame = self.channel.receive_raw()
            except ReceiveError as e:
                return self._finish(Termination(TerminationReason.FAILED, e))

            if frame is None:
                return self._finish(Termination(TerminationReason.CHANNEL_CLOSED))
            self.received += 1

            try:
                event = decode_event(frame)
            except DecodeError as e:
                self.skipped += 1
                logger.warning("Skipping frame: %s", e)
                continue

            self.on_event(event)
            self.dispatched += 1

    def stop(self):
        """Ask the loop to stop before its next receive."""
        self.shutdown.set()

    def _finish(self, termination):
        logger.info(
            "Monitor stopped (%s): %d received, %d dispatched, %d skipped",
            termination.reason.value, self.received, self.dispatched, self.skipped,
        )
        return termination
