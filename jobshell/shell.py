"""Interactive shell with job control: foreground, background and stopped jobs."""

from __future__ import annotations

import argparse
import os
import re
import signal
import sys
from collections.abc import Sequence
from typing import NoReturn, TextIO

from .jobs import (
    Job,
    JobList,
    JobState,
    Status,
    analyze_status,
    blocked_signal,
    set_terminal_signals,
)
from .parsing import RedirectionError, Redirections, parse_command, parse_redirections

PROMPT = "COMMAND->"
_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")
_CHILD_EXEC_FAILURE = 255
_CHILD_REDIRECT_FAILURE = 1


def _leading_int(text: str) -> int:
    """The integer at the start of ``text``, or 0 when there is none."""
    match = _LEADING_INTEGER.match(text)
    return int(match.group(1)) if match else 0


def _terminal_fd(stream: TextIO) -> int | None:
    """The descriptor of ``stream`` when it is a terminal, else None."""
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    return fd if os.isatty(fd) else None


class Shell:
    """Reads command lines, runs programs and keeps track of their jobs."""

    def __init__(self, stdout: TextIO | None = None) -> None:
        self.stdout = stdout if stdout is not None else sys.stdout
        self.jobs = JobList("job list")
        self.terminal_fd: int | None = None

    def _write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def _give_terminal(self, pgid: int) -> None:
        if self.terminal_fd is None:
            return
        try:
            os.tcsetpgrp(self.terminal_fd, pgid)
        except OSError:
            pass

    def execute(self, line: str) -> bool:
        """Run one command line; return False when the shell should exit."""
        command = parse_command(line)
        try:
            redirections = parse_redirections(command.args)
        except RedirectionError as exc:
            print(exc, file=sys.stderr)
            return True

        args = redirections.args
        if not args:
            return True

        name = args[0]
        if name == "cd":
            self._change_directory(args)
        elif name == "exit":
            self._write("Bye\n")
            return False
        elif name == "jobs":
            if self.jobs:
                self._write(self.jobs.format())
            else:
                self._write("no jobs running at the moment.\n")
        elif name in ("fg", "bg"):
            self._resume(name, args)
        else:
            self._launch(args, redirections, command.background)
        return True

    def run(self, stdin: TextIO | None = None) -> int:
        """Prompt for and execute lines until end of input or ``exit``."""
        stream = stdin if stdin is not None else sys.stdin
        self.terminal_fd = _terminal_fd(stream)
        while True:
            self._write(PROMPT)
            try:
                line = stream.readline()
            except OSError as exc:
                print(f"error reading the command: {exc}", file=sys.stderr)
                return 1
            if not line:
                self._write("\nBye\n")
                return 0
            if not self.execute(line):
                return 0

    def handle_sigchld(self, signum: int, frame: object) -> None:
        """Signal handler that collects state changes of background jobs."""
        self.reap_children()

    def reap_children(self) -> None:
        """Report and record every pending state change of a child process."""
        flags = os.WNOHANG | os.WUNTRACED | os.WCONTINUED
        while True:
            try:
                pid, status = os.waitpid(-1, flags)
            except ChildProcessError:
                return
            if pid == 0:
                return
            job = self.jobs.find_by_pid(pid)
            if job is None:
                continue
            change, info = analyze_status(status)
            self._write(
                f"Background pid: {job.pgid}, command {job.command}, "
                f"{change}, info: {info}\n"
            )
            if change is Status.SUSPENDED:
                job.state = JobState.STOPPED
            elif change is Status.CONTINUED:
                job.state = JobState.BACKGROUND
            else:
                self.jobs.remove(job)

    def _change_directory(self, args: Sequence[str]) -> None:
        target = args[1] if len(args) > 1 else ""
        try:
            os.chdir(target)
        except OSError:
            self._write(f"No such directory {target}\n")

    def _resume(self, name: str, args: Sequence[str]) -> None:
        if not self.jobs:
            self._write("no jobs to manipulate.\n")
            return
        position = _leading_int(args[1]) if len(args) > 1 else 1
        job = self.jobs.get_by_position(position)
        if job is None:
            self._write(f"Index {position} out of bounds for jobs\n")
            return
        if name == "fg":
            self._bring_to_foreground(job)
        elif job.state is not JobState.STOPPED:
            self._write(f"This job ({job.command}) is already in the background!\n")
        else:
            job.state = JobState.BACKGROUND
            try:
                os.killpg(job.pgid, signal.SIGCONT)
            except ProcessLookupError as exc:
                print(f"Error resuming job: {exc}", file=sys.stderr)

    def _bring_to_foreground(self, job: Job) -> None:
        was_stopped = job.state is JobState.STOPPED
        with blocked_signal(signal.SIGCHLD):
            self.jobs.remove(job)
            self._give_terminal(job.pgid)
            try:
                if was_stopped:
                    os.killpg(job.pgid, signal.SIGCONT)
                pid, status = os.waitpid(job.pgid, os.WUNTRACED)
            except (ChildProcessError, ProcessLookupError) as exc:
                print(f"Wait error: {exc}", file=sys.stderr)
                return
            finally:
                self._give_terminal(os.getpgrp())
            self._report_foreground(pid, job.command, status)

    def _report_foreground(self, pid: int, command: str, status: int) -> None:
        change, info = analyze_status(status)
        if change is Status.SUSPENDED:
            self.jobs.add(Job(pid, command, JobState.STOPPED))
        self._write(
            f"Foreground pid: {pid}, command: {command}, {change}, info: {info}\n"
        )

    def _launch(
        self, args: Sequence[str], redirections: Redirections, background: bool
    ) -> None:
        with blocked_signal(signal.SIGCHLD):
            try:
                pid = os.fork()
            except OSError as exc:
                print(f"Fork error: {exc}", file=sys.stderr)
                return
            if pid == 0:
                self._exec_child(args, redirections, not background)
            try:
                os.setpgid(pid, pid)
            except OSError:
                pass

            if background:
                self.jobs.add(Job(pid, args[0], JobState.BACKGROUND))
                self._write(
                    f"Background job running... pid: {pid}, command: {args[0]}\n"
                )
                return

            self._give_terminal(pid)
            try:
                _, status = os.waitpid(pid, os.WUNTRACED)
            except ChildProcessError as exc:
                print(f"Wait error: {exc}", file=sys.stderr)
                return
            finally:
                self._give_terminal(os.getpgrp())
            self._report_foreground(pid, args[0], status)

    def _exec_child(
        self, args: Sequence[str], redirections: Redirections, foreground: bool
    ) -> NoReturn:
        code = _CHILD_EXEC_FAILURE
        try:
            os.setpgid(0, 0)
            if foreground:
                self._give_terminal(os.getpid())
            try:
                if redirections.file_in is not None:
                    fd = os.open(redirections.file_in, os.O_RDONLY)
                    os.dup2(fd, 0)
                    os.close(fd)
                if redirections.file_out is not None:
                    fd = os.open(
                        redirections.file_out,
                        os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
                        0o666,
                    )
                    os.dup2(fd, 1)
                    os.close(fd)
            except OSError as exc:
                code = _CHILD_REDIRECT_FAILURE
                os.write(2, f"Error redirecting: {exc}\n".encode())
                raise
            set_terminal_signals(signal.SIG_DFL)
            signal.signal(signal.SIGCHLD, signal.SIG_DFL)
            signal.pthread_sigmask(signal.SIG_UNBLOCK, {signal.SIGCHLD})
            os.execvp(args[0], list(args))
        except BaseException:
            if code == _CHILD_EXEC_FAILURE:
                os.write(2, f"Error, command not found: {args[0]}\n".encode())
        finally:
            os._exit(code)


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive job control shell on standard input."""
    parser = argparse.ArgumentParser(
        prog="jobshell", description="Job control shell."
    )
    parser.parse_args(argv)

    shell = Shell(sys.stdout)
    previous_terminal = set_terminal_signals(signal.SIG_IGN)
    previous_sigchld = signal.signal(signal.SIGCHLD, shell.handle_sigchld)
    try:
        return shell.run(sys.stdin)
    finally:
        signal.signal(signal.SIGCHLD, previous_sigchld)
        for signum, handler in previous_terminal.items():
            signal.signal(signum, handler)


if __name__ == "__main__":
    sys.exit(main())