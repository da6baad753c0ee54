"""
L4 Execution — launching extension and host-tool processes.

The single place where the CLI hands control to another executable:
launch with arguments and environment, inherit stdio, wait, and
return the child's exit code unchanged.  Never goes through a shell.

Interrupts are not swallowed: Ctrl-C reaches the child through the
terminal's process group, and we keep waiting so the child's own
signal handling decides when the process ends.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)


def _exit_code(returncode: int) -> int:
    """Shell convention: death by signal N becomes 128+N."""
    return 128 - returncode if returncode < 0 else returncode


class ProcessLauncher:
    """Run a child process attached to this process's stdio."""

    def run(self, cmd: Sequence[str], env: Mapping[str, str] | None = None) -> int:
        """Run ``cmd`` to completion and return its exit code.

        Raises:
            OSError: The executable could not be started.
        """
        full_env = dict(os.environ)
        if env:
            full_env.update(env)

        logger.debug("Launching: %s", list(cmd))
        proc = subprocess.Popen(list(cmd), env=full_env)

        previous = None
        if os.name == "posix" and threading.current_thread() is threading.main_thread():
            def _forward(signum, _frame):
                proc.send_signal(signum)

            previous = signal.signal(signal.SIGTERM, _forward)

        try:
            while True:
                try:
                    returncode = proc.wait()
                    break
                except KeyboardInterrupt:
                    logger.debug("Interrupt received — waiting for child %d", proc.pid)
                    continue
        finally:
            if previous is not None:
                signal.signal(signal.SIGTERM, previous)

        logger.debug("Child %d exited with %d", proc.pid, returncode)
        return _exit_code(returncode)
