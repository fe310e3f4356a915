"""Job list, wait status decoding and terminal signal helpers."""

from __future__ import annotations

import os
import signal
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Union

_TERMINAL_SIGNALS = (
    signal.SIGINT,
    signal.SIGQUIT,
    signal.SIGTSTP,
    signal.SIGTTIN,
    signal.SIGTTOU,
)

SignalHandler = Union[Callable[[int, object], object], int, signal.Handlers, None]


class Status(Enum):
    """How a waited-for process changed."""

    SUSPENDED = "Suspended"
    SIGNALED = "Signaled"
    EXITED = "Exited"
    CONTINUED = "Continued"

    def __str__(self) -> str:
        return self.value


class JobState(Enum):
    """Where a job currently runs."""

    FOREGROUND = "Foreground"
    BACKGROUND = "Background"
    STOPPED = "Stopped"

    def __str__(self) -> str:
        return self.value


@dataclass(eq=False)
class Job:
    """A process group started by the shell."""

    pgid: int
    command: str
    state: JobState

    def describe(self) -> str:
        """One line with pid, command and state."""
        return f"pid: {self.pgid}, command: {self.command}, state: {self.state}"


class JobList:
    """Named list of jobs with the most recently added job first."""

    def __init__(self, name: str = "job list") -> None:
        self.name = name
        self._jobs: list[Job] = []

    def add(self, job: Job) -> None:
        """Insert a job at the head of the list."""
        self._jobs.insert(0, job)

    def remove(self, job: Job) -> bool:
        """Remove this very job; return whether it was in the list."""
        for index, item in enumerate(self._jobs):
            if item is job:
                del self._jobs[index]
                return True
        return False

    def find_by_pid(self, pid: int) -> Job | None:
        """The first job whose process group id is ``pid``, if any."""
        return next((job for job in self._jobs if job.pgid == pid), None)

    def get_by_position(self, position: int) -> Job | None:
        """The job at a 1-based position, or None when out of range."""
        if 1 <= position <= len(self._jobs):
            return self._jobs[position - 1]
        return None

    def format(self) -> str:
        """The listing printed by the ``jobs`` command."""
        lines = [f"Contents of {self.name}:"]
        lines.extend(
            f" [{number}] {job.describe()}"
            for number, job in enumerate(self._jobs, start=1)
        )
        return "\n".join(lines) + "\n"

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        # Iterate over a snapshot so jobs may be removed while walking.
        return iter(list(self._jobs))


def analyze_status(status: int) -> tuple[Status, int]:
    """Decode a status from ``os.waitpid`` into a change and its detail.

    The detail is the stop signal, the terminating signal, the exit code, or
    0 for a continued process.
    """
    if os.WIFSTOPPED(status):
        return Status.SUSPENDED, os.WSTOPSIG(status)
    if os.WIFCONTINUED(status):
        return Status.CONTINUED, 0
    if os.WIFSIGNALED(status):
        return Status.SIGNALED, os.WTERMSIG(status)
    if os.WIFEXITED(status):
        return Status.EXITED, os.WEXITSTATUS(status)
    raise ValueError(f"unrecognised wait status: {status}")


def set_terminal_signals(handler: SignalHandler) -> dict[int, SignalHandler]:
    """Install ``handler`` for the terminal related signals.

    Returns the handlers that were installed before, keyed by signal.
    """
    return {signum: signal.signal(signum, handler) for signum in _TERMINAL_SIGNALS}


@contextmanager
def blocked_signal(signum: int) -> Iterator[None]:
    """Defer delivery of ``signum`` for the duration of the block."""
    signal.pthread_sigmask(signal.SIG_BLOCK, {signum})
    try:
        yield
    finally:
        signal.pthread_sigmask(signal.SIG_UNBLOCK, {signum})