from .codec import decode_event, encode_subscribe
from .channel import ProcConnector
from .process import ProcessMonitor, ShutdownFlag, Termination, TerminationReason

__all__ = [
    'decode_event',
    'encode_subscribe',
    'ProcConnector',
    'ProcessMonitor',
    'ShutdownFlag',
    'Termination',
    'TerminationReason',
]
