# cnproc_sentinel/config.py
"""
Configuration for cnproc-sentinel.
Centralized place for all configurable parameters.
"""
import os
import signal

# =========================================================
# RECV_BUFFER_SIZE
#
# Bytes requested per recv() on the connector socket.
# A proc_event frame is 76 bytes on current kernels; the
# rest is headroom for larger event kinds in newer kernels.
# Override with CNPROC_SENTINEL_RECV_BUFFER.
# Checked when the channel is opened; values below the
# largest proc_event frame (76 bytes) are rejected.
# =========================================================
RECV_BUFFER_SIZE = os.environ.get('CNPROC_SENTINEL_RECV_BUFFER', '4096')

# =========================================================
# LOG_LEVEL
#
# Level for diagnostics on stderr. Event lines on stdout
# are not affected. Override with CNPROC_SENTINEL_LOG_LEVEL.
# =========================================================
LOG_LEVEL = os.environ.get('CNPROC_SENTINEL_LOG_LEVEL', 'INFO').upper()

# =========================================================
# SHUTDOWN_SIGNAL
#
# The only graceful stop trigger (Ctrl+C).
# =========================================================
SHUTDOWN_SIGNAL = signal.SIGINT
