"""
Pytest configuration and shared fixtures for cnproc-sentinel tests.

Provides a kernel-style frame builder and a scripted stand-in for the
connector channel.
"""

import importlib
import os
import struct
import sys
from unittest.mock import patch

import pytest

# Add the parent directory to the path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cnproc_sentinel import config
from cnproc_sentinel.errors import ReceiveError


# ===========================================================================
# Frame Builder
# ===========================================================================

def make_frame(what, *payload, cpu=0, timestamp_ns=0, padding=0):
    """
    Build a datagram the way the kernel lays out a proc_event message.

    nlmsghdr (16) + packed cn_msg (20) + proc_event header (16) + u32 payload,
    all in native byte order, followed by `padding` zero bytes.
    """
    body = struct.pack("=IIQ", what, cpu, timestamp_ns)
    body += struct.pack("=%dI" % len(payload), *payload)
    cn_msg = struct.pack("=IIIIHH", 1, 1, 0, 0, len(body), 0)
    total = 16 + len(cn_msg) + len(body)
    nlmsghdr = struct.pack("=IHHII", total, 3, 0, 0, 0)
    return nlmsghdr + cn_msg + body + b"\x00" * padding


@pytest.fixture
def frame_builder():
    return make_frame


# ===========================================================================
# Channel Fixtures
# ===========================================================================

class ScriptedChannel:
    """
    Stand-in for ProcConnector.

    `script` items are returned by receive_raw() in order: bytes are frames,
    None means end of channel, an exception instance is raised, and a
    callable is invoked and its result handled the same way.
    Once the script is exhausted the channel reports end of channel.
    """

    def __init__(self, script):
        self.script = list(script)
        self.receives = 0
        self.calls = []
        self.listening = []
        self.closed = 0
        self.open_error = None
        self.listen_error = None

    def open(self):
        self.calls.append("open")
        if self.open_error is not None:
            raise self.open_error

    def set_listening(self, enable):
        self.calls.append(f"listen:{enable}")
        self.listening.append(enable)
        if self.listen_error is not None:
            raise self.listen_error

    def receive_raw(self):
        self.receives += 1
        if not self.script:
            return None
        item = self.script.pop(0)
        if callable(item):
            item = item()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.calls.append("close")
        self.closed += 1


@pytest.fixture
def scripted_channel():
    return ScriptedChannel


@pytest.fixture
def recv_failure():
    return ReceiveError("netlink recv", "No buffer space available")


@pytest.fixture
def quiet_signals():
    """Keep tests from replacing the real SIGINT handler."""
    with patch("cnproc_sentinel.main.signal") as mock_signal:
        yield mock_signal


# ===========================================================================
# Config Fixtures
# ===========================================================================

@pytest.fixture
def reload_config():
    """
    Reload cnproc_sentinel.config under a given environment.

    The module is reloaded again with the real environment afterwards.
    """
    def _reload(**env):
        with patch.dict(os.environ, env):
            return importlib.reload(config)

    yield _reload
    importlib.reload(config)
