# cnproc_sentinel/probes/events.py
"""
Process Events
Decoded process connector notifications, one dataclass per event kind.

Field naming follows the user-space point of view:
    process_id = kernel tgid (thread group id)
    thread_id  = kernel pid  (per-task id)
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessEvent:
    """Fields every proc_event header carries."""
    cpu: int = 0
    timestamp_ns: int = 0


@dataclass(frozen=True)
class ForkEvent(ProcessEvent):
    parent_thread_id: int = 0
    parent_process_id: int = 0
    child_thread_id: int = 0
    child_process_id: int = 0


@dataclass(frozen=True)
class ExecEvent(ProcessEvent):
    thread_id: int = 0
    process_id: int = 0


@dataclass(frozen=True)
class UidChangeEvent(ProcessEvent):
    thread_id: int = 0
    process_id: int = 0
    real_uid: int = 0
    effective_uid: int = 0


@dataclass(frozen=True)
class GidChangeEvent(ProcessEvent):
    thread_id: int = 0
    process_id: int = 0
    real_gid: int = 0
    effective_gid: int = 0


@dataclass(frozen=True)
class ExitEvent(ProcessEvent):
    thread_id: int = 0
    process_id: int = 0
    exit_code: int = 0
    exit_signal: int = 0


@dataclass(frozen=True)
class ConnectionAck(ProcessEvent):
    """The kernel's answer to a LISTEN/IGNORE request (PROC_EVENT_NONE)."""
    error: int = 0


@dataclass(frozen=True)
class UnknownEvent(ProcessEvent):
    """A kind this decoder does not know; kept so newer kernels stay visible."""
    kind_tag: int = 0
