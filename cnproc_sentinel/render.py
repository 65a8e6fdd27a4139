# cnproc_sentinel/render.py
"""
Console rendering of process events, one line per event on stdout.
"""
from functools import singledispatch

from rich.console import Console
from rich.text import Text

from cnproc_sentinel.probes.events import (
    ConnectionAck,
    ExecEvent,
    ExitEvent,
    ForkEvent,
    GidChangeEvent,
    ProcessEvent,
    UidChangeEvent,
    UnknownEvent,
)

LABEL_STYLES = {
    "fork": "bold green",
    "exec": "bold cyan",
    "uid change": "bold yellow",
    "gid change": "bold yellow",
    "exit": "bold red",
    "set mcast listen": "bold magenta",
    "unhandled proc event": "dim",
}


@singledispatch
def describe(event):
    """Return (label, detail) for an event."""
    raise TypeError(f"not a process event: {event!r}")


@describe.register
def _(event: ForkEvent):
    return "fork", (
        f"parent tid={event.parent_thread_id} pid={event.parent_process_id} -> "
        f"child tid={event.child_thread_id} pid={event.child_process_id}"
    )


@describe.register
def _(event: ExecEvent):
    return "exec", f"tid={event.thread_id} pid={event.process_id}"


@describe.register
def _(event: UidChangeEvent):
    return "uid change", (
        f"tid={event.thread_id} pid={event.process_id} "
        f"from {event.real_uid} to {event.effective_uid}"
    )


@describe.register
def _(event: GidChangeEvent):
    return "gid change", (
        f"tid={event.thread_id} pid={event.process_id} "
        f"from {event.real_gid} to {event.effective_gid}"
    )


@describe.register
def _(event: ExitEvent):
    return "exit", f"tid={event.thread_id} pid={event.process_id} exit_code={event.exit_code}"


@describe.register
def _(event: ConnectionAck):
    if event.error:
        return "set mcast listen", f"failed: error={event.error}"
    return "set mcast listen", "ok"


@describe.register
def _(event: UnknownEvent):
    return "unhandled proc event", f"what={event.kind_tag:#x}"


def format_line(event: ProcessEvent) -> Text:
    label, detail = describe(event)
    separator = " " if isinstance(event, ConnectionAck) else ": "
    return Text.assemble((label, LABEL_STYLES[label]), separator, detail)


class ConsoleReporter:
    """Prints each event as a single unwrapped line."""

    def __init__(self, console=None):
        self.console = console or Console(highlight=False)

    def __call__(self, event):
        self.console.print(format_line(event), soft_wrap=True)
