"""Zombie reaping for containers where kubestate runs as PID 1."""

from __future__ import annotations

import asyncio
import os
import signal

import structlog

_log = structlog.get_logger(component="reaper")


def reap_children() -> int:
    """Collect every exited child without blocking.  Returns how many were reaped."""
    reaped = 0
    while True:
        try:
            pid, status = os.waitpid(-1, os.WNOHANG)
        except ChildProcessError:
            break
        if pid == 0:
            break
        reaped += 1
        _log.debug("reaped child process", pid=pid, status=status)
    return reaped


def start_reaper(loop: asyncio.AbstractEventLoop) -> bool:
    """Install a SIGCHLD handler on *loop* when running as PID 1.

    Returns:
        True if the handler was installed.
    """
    if os.getpid() != 1:
        return False
    loop.add_signal_handler(signal.SIGCHLD, reap_children)
    _log.info("launching reaper")
    return True
