# cnproc_sentinel/errors.py
"""
Error taxonomy.

SetupError         - socket creation or bind failed, fatal before listening
SubscriptionError  - LISTEN/IGNORE send failed, reported but not fatal
DecodeError        - frame too short to decode, the frame is skipped
ReceiveError       - recv failed (not EINTR), ends the listen loop

A kernel-side channel close is not an error; see TerminationReason.
"""


class SentinelError(Exception):
    """Base class. `operation` names the call that failed."""

    def __init__(self, operation, message):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class SetupError(SentinelError):
    pass


class SubscriptionError(SentinelError):
    pass


class DecodeError(SentinelError):
    def __init__(self, message):
        super().__init__("decode", message)


class ReceiveError(SentinelError):
    pass
