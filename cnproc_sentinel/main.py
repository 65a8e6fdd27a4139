# cnproc_sentinel/main.py
"""
cnproc-sentinel - Entry Point
Reports every fork, exec, uid/gid change and exit on the machine using the
netlink process connector.
"""
import signal
import sys

from cnproc_sentinel import config
from cnproc_sentinel.errors import SetupError, SubscriptionError
from cnproc_sentinel.log import get_logger, setup_logging
from cnproc_sentinel.probes.channel import ProcConnector
from cnproc_sentinel.probes.process import ProcessMonitor, ShutdownFlag
from cnproc_sentinel.render import ConsoleReporter

logger = get_logger("cnproc_sentinel")


def install_shutdown_handler(shutdown):
    """
    Make the shutdown signal set the flag and nothing else.

    Blocking calls interrupted by the signal are restarted, so the loop only
    sees the flag on its next iteration.
    """
    def graceful_shutdown(signum, frame):
        shutdown.set()

    signal.signal(config.SHUTDOWN_SIGNAL, graceful_shutdown)
    signal.siginterrupt(config.SHUTDOWN_SIGNAL, False)


def main(channel=None, reporter=None):
    """
    Run the observer.

    Returns:
        Process exit status: 0 after a clean stop, 1 when the channel could
        not be opened or the receive loop failed.
    """
    setup_logging()

    channel = channel or ProcConnector()
    try:
        channel.open()
    except SetupError as e:
        logger.error("Cannot open process connector: %s", e)
        return 1

    try:
        return _observe(channel, reporter or ConsoleReporter())
    finally:
        channel.close()


def _observe(channel, reporter):
    """Subscribe, listen and unsubscribe on an opened channel."""
    shutdown = ShutdownFlag()
    install_shutdown_handler(shutdown)

    # Keep observing even if LISTEN could not be sent.
    pending_failure = None
    try:
        channel.set_listening(True)
    except SubscriptionError as e:
        pending_failure = e
        logger.error("Subscription failed, listening anyway: %s", e)

    termination = ProcessMonitor(channel, reporter, shutdown).run()

    if not termination.ok:
        logger.error("Listening stopped: %s", termination.error)
        return 1

    try:
        channel.set_listening(False)
    except SubscriptionError as e:
        logger.warning("Unsubscribe failed: %s", e)

    if pending_failure is not None:
        logger.warning("Finished after an earlier subscription failure (%s)", pending_failure)
    return 0


if __name__ == "__main__":
    sys.exit(main())
