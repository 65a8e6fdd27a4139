# cnproc_sentinel/probes/codec.py
"""
Process Connector Codec
Builds the LISTEN/IGNORE control message and decodes proc_event frames.

Every frame on the NETLINK_CONNECTOR socket is laid out as:

    struct nlmsghdr      16 bytes, NLMSG_ALIGNTO (4) aligned
    struct cn_msg        20 bytes, packed against the header
    payload              op code (send) or struct proc_event (receive)

The layout below is written out as explicit offsets instead of relying on
ctypes struct rules. Integers are in host byte order with standard sizes:
the channel never leaves the machine.
"""
import os
import struct
from collections import namedtuple

from cnproc_sentinel.errors import DecodeError
from cnproc_sentinel.probes.events import (
    ConnectionAck,
    ExecEvent,
    ExitEvent,
    ForkEvent,
    GidChangeEvent,
    UidChangeEvent,
    UnknownEvent,
)

# =========================================================
# Kernel constants (linux/netlink.h, linux/connector.h, linux/cn_proc.h)
# =========================================================
NETLINK_CONNECTOR = 11
NLMSG_ALIGNTO = 4
NLMSG_DONE = 3

CN_IDX_PROC = 1
CN_VAL_PROC = 1

PROC_CN_MCAST_LISTEN = 1
PROC_CN_MCAST_IGNORE = 2

PROC_EVENT_NONE = 0x00000000
PROC_EVENT_FORK = 0x00000001
PROC_EVENT_EXEC = 0x00000002
PROC_EVENT_UID = 0x00000004
PROC_EVENT_GID = 0x00000040
PROC_EVENT_EXIT = 0x80000000

# =========================================================
# Layout tables
# =========================================================
Field = namedtuple("Field", ["name", "offset", "fmt"])

NLMSGHDR = (
    Field("nlmsg_len", 0, "I"),
    Field("nlmsg_type", 4, "H"),
    Field("nlmsg_flags", 6, "H"),
    Field("nlmsg_seq", 8, "I"),
    Field("nlmsg_pid", 12, "I"),
)
NLMSGHDR_LEN = 16

CN_MSG = (
    Field("idx", 16, "I"),
    Field("val", 20, "I"),
    Field("seq", 24, "I"),
    Field("ack", 28, "I"),
    Field("len", 32, "H"),
    Field("flags", 34, "H"),
)
CN_MSG_END = 36

SUBSCRIBE_OP = Field("op", CN_MSG_END, "I")
SUBSCRIBE_LEN = CN_MSG_END + 4

# struct proc_event header; timestamp_ns is 8-aligned inside proc_event,
# which puts it at 44 once proc_event starts at 36.
PROC_EVENT_HEADER = (
    Field("what", CN_MSG_END, "I"),
    Field("cpu", CN_MSG_END + 4, "I"),
    Field("timestamp_ns", CN_MSG_END + 8, "Q"),
)
EVENT_DATA = CN_MSG_END + 16

# Largest proc_event frame: headers plus the 40-byte struct proc_event.
MAX_EVENT_FRAME_LEN = EVENT_DATA + 24

# Per-kind payload at EVENT_DATA, mapped onto the event's field names.
PAYLOADS = {
    PROC_EVENT_NONE: (ConnectionAck, (
        Field("error", EVENT_DATA, "I"),
    )),
    PROC_EVENT_FORK: (ForkEvent, (
        Field("parent_thread_id", EVENT_DATA, "I"),
        Field("parent_process_id", EVENT_DATA + 4, "I"),
        Field("child_thread_id", EVENT_DATA + 8, "I"),
        Field("child_process_id", EVENT_DATA + 12, "I"),
    )),
    PROC_EVENT_EXEC: (ExecEvent, (
        Field("thread_id", EVENT_DATA, "I"),
        Field("process_id", EVENT_DATA + 4, "I"),
    )),
    PROC_EVENT_UID: (UidChangeEvent, (
        Field("thread_id", EVENT_DATA, "I"),
        Field("process_id", EVENT_DATA + 4, "I"),
        Field("real_uid", EVENT_DATA + 8, "I"),
        Field("effective_uid", EVENT_DATA + 12, "I"),
    )),
    PROC_EVENT_GID: (GidChangeEvent, (
        Field("thread_id", EVENT_DATA, "I"),
        Field("process_id", EVENT_DATA + 4, "I"),
        Field("real_gid", EVENT_DATA + 8, "I"),
        Field("effective_gid", EVENT_DATA + 12, "I"),
    )),
    PROC_EVENT_EXIT: (ExitEvent, (
        Field("thread_id", EVENT_DATA, "I"),
        Field("process_id", EVENT_DATA + 4, "I"),
        Field("exit_code", EVENT_DATA + 8, "I"),
        Field("exit_signal", EVENT_DATA + 12, "I"),
    )),
}


def _end(fields):
    """First byte past the last field of a layout table."""
    return max(f.offset + struct.calcsize("=" + f.fmt) for f in fields)


def _pack_into(buf, fields, values):
    for f in fields:
        struct.pack_into("=" + f.fmt, buf, f.offset, values.get(f.name, 0))


def _unpack_from(frame, fields):
    return {f.name: struct.unpack_from("=" + f.fmt, frame, f.offset)[0] for f in fields}


def encode_subscribe(enable, pid=None):
    """
    Build the control message that turns multicast delivery on or off.

    Args:
        enable: True for PROC_CN_MCAST_LISTEN, False for PROC_CN_MCAST_IGNORE
        pid: nlmsg_pid to stamp on the header (defaults to os.getpid())

    Returns:
        SUBSCRIBE_LEN bytes ready to send.
    """
    buf = bytearray(SUBSCRIBE_LEN)
    _pack_into(buf, NLMSGHDR, {
        "nlmsg_len": SUBSCRIBE_LEN,
        "nlmsg_type": NLMSG_DONE,
        "nlmsg_pid": os.getpid() if pid is None else pid,
    })
    _pack_into(buf, CN_MSG, {
        "idx": CN_IDX_PROC,
        "val": CN_VAL_PROC,
        "len": SUBSCRIBE_LEN - CN_MSG_END,
    })
    _pack_into(buf, (SUBSCRIBE_OP,), {
        "op": PROC_CN_MCAST_LISTEN if enable else PROC_CN_MCAST_IGNORE,
    })
    return bytes(buf)


def decode_event(frame):
    """
    Decode one datagram received from the process connector.

    The kernel hands over whole datagrams, so anything after the payload of
    the decoded kind is ignored. Kinds without a layout here come back as
    UnknownEvent.

    Raises:
        DecodeError: the frame is shorter than the header or than the
            payload of its kind.
    """
    header_end = _end(PROC_EVENT_HEADER)
    if len(frame) < header_end:
        raise DecodeError(f"frame of {len(frame)} bytes, need at least {header_end}")

    header = _unpack_from(frame, PROC_EVENT_HEADER)
    what = header.pop("what")

    if what not in PAYLOADS:
        return UnknownEvent(kind_tag=what, **header)

    event_cls, fields = PAYLOADS[what]
    payload_end = _end(fields)
    if len(frame) < payload_end:
        raise DecodeError(
            f"{event_cls.__name__} frame of {len(frame)} bytes, need {payload_end}"
        )
    return event_cls(**header, **_unpack_from(frame, fields))
