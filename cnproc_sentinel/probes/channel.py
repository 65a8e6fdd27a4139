# cnproc_sentinel/probes/channel.py
"""
Process Connector Channel
Owns the NETLINK_CONNECTOR socket bound to the CN_IDX_PROC multicast group.
"""
import errno
import os
import socket

from cnproc_sentinel import config
from cnproc_sentinel.errors import ReceiveError, SetupError, SubscriptionError
from cnproc_sentinel.log import get_logger
from cnproc_sentinel.probes.codec import (
    CN_IDX_PROC,
    MAX_EVENT_FRAME_LEN,
    NETLINK_CONNECTOR,
    encode_subscribe,
)

logger = get_logger(__name__)


class ProcConnector:
    """
    Kernel process connector client.

    One socket per instance. Subscribe once with set_listening(True),
    unsubscribe with set_listening(False); re-subscribing needs a new
    instance.
    """

    def __init__(self, recv_buffer_size=None):
        if recv_buffer_size is None:
            recv_buffer_size = config.RECV_BUFFER_SIZE
        self.recv_buffer_size = recv_buffer_size
        self.sock = None

    def open(self):
        """
        Create the socket and bind it to this process and the proc group.

        Raises:
            SetupError: the receive buffer size is unusable, or socket()
                or bind() failed. Binding to the proc group needs root
                (CAP_NET_ADMIN).
        """
        self.recv_buffer_size = _check_buffer_size(self.recv_buffer_size)

        try:
            sock = socket.socket(socket.AF_NETLINK, socket.SOCK_DGRAM, NETLINK_CONNECTOR)
        except OSError as e:
            raise SetupError("socket", _describe(e)) from e

        try:
            sock.bind((os.getpid(), CN_IDX_PROC))
        except OSError as e:
            sock.close()
            raise SetupError("bind", _describe(e)) from e

        self.sock = sock
        logger.debug("Bound connector socket (pid=%d, group=%d)", os.getpid(), CN_IDX_PROC)

    def set_listening(self, enable):
        """
        Send PROC_CN_MCAST_LISTEN (enable=True) or PROC_CN_MCAST_IGNORE.

        Raises:
            SubscriptionError: the send failed. Not retried.
        """
        message = encode_subscribe(enable)
        try:
            self.sock.send(message)
        except OSError as e:
            raise SubscriptionError("netlink send", _describe(e)) from e
        logger.debug("Sent %s request", "LISTEN" if enable else "IGNORE")

    def receive_raw(self):
        """
        Block until the kernel delivers one datagram.

        Returns:
            The datagram bytes, or None when the kernel closed the channel.

        Raises:
            ReceiveError: recv failed for any reason other than a signal.
        """
        while True:
            try:
                data = self.sock.recv(self.recv_buffer_size)
            except InterruptedError:
                continue
            except OSError as e:
                raise ReceiveError("netlink recv", _describe(e)) from e
            return data or None

    def close(self):
        """Release the socket. Safe to call more than once."""
        if self.sock is not None:
            self.sock.close()
            self.sock = None
            logger.debug("Connector socket closed")


def _describe(exc):
    message = exc.strerror or str(exc)
    if exc.errno in (errno.EPERM, errno.EACCES):
        message += " (run as root or with CAP_NET_ADMIN)"
    return message


def _check_buffer_size(value):
    """A recv() buffer must hold a whole proc_event frame."""
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise SetupError("recv buffer", f"not a number: {value!r}") from None
    if size < MAX_EVENT_FRAME_LEN:
        raise SetupError(
            "recv buffer",
            f"{size} bytes is smaller than a proc_event frame ({MAX_EVENT_FRAME_LEN} bytes)",
        )
    return size
