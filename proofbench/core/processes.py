"""Child process handling shared by the nargo and bb runners."""

from __future__ import annotations

import asyncio
import os
import signal
import sys


async def communicate(process: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
    """Wait for ``process`` and collect its output.

    If the wait is cancelled (stage timeout, Ctrl-C) the child's process group
    is killed and reaped before the cancellation propagates.
    """
    try:
        return await process.communicate()
    except BaseException:
        terminate(process)
        await process.wait()
        raise


def terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return

    if sys.platform == "win32":
        process.kill()
        return

    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        return
    except OSError:  # pragma: no cover - platform dependent
        process.kill()


def session_kwargs() -> dict[str, bool]:
    """Keyword arguments that start a child in its own process group."""
    return {} if sys.platform == "win32" else {"start_new_session": True}


__all__ = ["communicate", "session_kwargs", "terminate"]
