import os
import signal
import subprocess
import sys

import pytest

from jobshell.jobs import (
    Job,
    JobList,
    JobState,
    Status,
    analyze_status,
    blocked_signal,
    set_terminal_signals,
)


def _spawn(code):
    return subprocess.Popen([sys.executable, "-c", code])


def _reap(pid):
    try:
        os.kill(pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    try:
        os.waitpid(pid, 0)
    except ChildProcessError:
        pass


@pytest.mark.parametrize(
    "state, name",
    [
        (JobState.FOREGROUND, "Foreground"),
        (JobState.BACKGROUND, "Background"),
        (JobState.STOPPED, "Stopped"),
    ],
)
def test_state_names_in_description(state, name):
    job = Job(1, "cmd", state)
    assert job.describe() == f"pid: 1, command: cmd, state: {name}"


def test_describe_line():
    job = Job(4242, "sleep", JobState.STOPPED)
    assert job.describe() == "pid: 4242, command: sleep, state: Stopped"


def test_new_list_is_empty():
    jobs = JobList("job list")
    assert len(jobs) == 0
    assert not jobs
    assert list(jobs) == []


def test_add_puts_job_at_head():
    jobs = JobList()
    first = Job(10, "a", JobState.BACKGROUND)
    second = Job(20, "b", JobState.STOPPED)
    jobs.add(first)
    jobs.add(second)
    assert len(jobs) == 2
    assert list(jobs) == [second, first]
    assert jobs.get_by_position(1) is second
    assert jobs.get_by_position(2) is first


@pytest.mark.parametrize("position", [0, -1, 3])
def test_get_by_position_out_of_range(position):
    jobs = JobList()
    jobs.add(Job(1, "x", JobState.BACKGROUND))
    jobs.add(Job(2, "y", JobState.BACKGROUND))
    assert jobs.get_by_position(position) is None


def test_find_by_pid():
    jobs = JobList()
    wanted = Job(33, "vim", JobState.STOPPED)
    jobs.add(Job(11, "cat", JobState.BACKGROUND))
    jobs.add(wanted)
    assert jobs.find_by_pid(33) is wanted
    assert jobs.find_by_pid(99) is None


def test_remove_by_identity():
    jobs = JobList()
    kept = Job(5, "same", JobState.BACKGROUND)
    dropped = Job(5, "same", JobState.BACKGROUND)
    jobs.add(kept)
    jobs.add(dropped)
    assert jobs.remove(dropped) is True
    assert list(jobs) == [kept]
    assert jobs.remove(dropped) is False
    assert len(jobs) == 1


def test_remove_while_iterating():
    jobs = JobList()
    for pid in (1, 2, 3):
        jobs.add(Job(pid, f"cmd{pid}", JobState.BACKGROUND))
    for job in jobs:
        jobs.remove(job)
    assert len(jobs) == 0


def test_format_listing():
    jobs = JobList("job list")
    jobs.add(Job(7, "top", JobState.STOPPED))
    jobs.add(Job(8, "sleep", JobState.BACKGROUND))
    assert jobs.format() == (
        "Contents of job list:\n"
        " [1] pid: 8, command: sleep, state: Background\n"
        " [2] pid: 7, command: top, state: Stopped\n"
    )


def test_format_empty_list():
    assert JobList("mine").format() == "Contents of mine:\n"


def test_analyze_exit_status():
    proc = _spawn("import sys; sys.exit(3)")
    _, status = os.waitpid(proc.pid, 0)
    result = analyze_status(status)
    assert result == (Status.EXITED, 3)
    assert str(result[0]) == "Exited"


def test_analyze_signaled_status():
    proc = _spawn("import time; time.sleep(30)")
    try:
        os.kill(proc.pid, signal.SIGKILL)
        _, status = os.waitpid(proc.pid, 0)
        result = analyze_status(status)
        assert result == (Status.SIGNALED, signal.SIGKILL)
        assert str(result[0]) == "Signaled"
    finally:
        _reap(proc.pid)


def test_analyze_stopped_and_continued_status():
    proc = _spawn("import time; time.sleep(30)")
    pid = proc.pid
    try:
        os.kill(pid, signal.SIGSTOP)
        _, status = os.waitpid(pid, os.WUNTRACED)
        result = analyze_status(status)
        assert result == (Status.SUSPENDED, signal.SIGSTOP)
        assert str(result[0]) == "Suspended"
        os.kill(pid, signal.SIGCONT)
        _, status = os.waitpid(pid, os.WCONTINUED)
        result = analyze_status(status)
        assert result == (Status.CONTINUED, 0)
        assert str(result[0]) == "Continued"
    finally:
        _reap(pid)


def test_set_terminal_signals_installs_and_restores():
    previous = set_terminal_signals(signal.SIG_IGN)
    try:
        for signum in (signal.SIGINT, signal.SIGQUIT, signal.SIGTSTP,
                       signal.SIGTTIN, signal.SIGTTOU):
            assert signal.getsignal(signum) == signal.SIG_IGN
        assert set(previous) == {signal.SIGINT, signal.SIGQUIT, signal.SIGTSTP,
                                 signal.SIGTTIN, signal.SIGTTOU}
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
    assert signal.getsignal(signal.SIGINT) == previous[signal.SIGINT]


def test_blocked_signal_masks_and_unmasks():
    signum = signal.SIGUSR1
    with blocked_signal(signum):
        assert signum in signal.pthread_sigmask(signal.SIG_BLOCK, [])
    assert signum not in signal.pthread_sigmask(signal.SIG_BLOCK, [])


def test_blocked_signal_defers_delivery():
    received = []
    old = signal.signal(signal.SIGUSR2, lambda s, f: received.append(s))
    try:
        with blocked_signal(signal.SIGUSR2):
            os.kill(os.getpid(), signal.SIGUSR2)
            assert received == []
        assert received == [signal.SIGUSR2]
    finally:
        signal.signal(signal.SIGUSR2, old)