# jobshell

A small interactive shell for POSIX systems with job control. It runs
programs in their own process groups, hands the terminal to foreground
jobs, and keeps a list of background and stopped jobs.

## Installing

```
pip install .
```

## Running

```
jobshell
```

The shell prints a `COMMAND->` prompt and reads one line at a time from
standard input. Press Ctrl-D (end of input) or type `exit` to leave.
`jobshell --help` shows a short usage message; there are no other options.

While the shell runs it ignores Ctrl-C, Ctrl-\ and Ctrl-Z itself and
restores the default handling in the programs it starts.

## Command lines

- Words are separated by spaces or tabs.
- `#` starts a comment; everything after it is ignored. Write `\#` inside a
  word to put a literal `#` into it.
- `&` runs the command in the background; anything after `&` is ignored.
- `< file` reads standard input from `file`, and `> file` writes standard
  output to `file` (created or truncated). The operators must stand as words
  of their own, with blanks on both sides. If an operator appears more than
  once, the last file name is used. An operator with no file name after it
  prints `syntax error in redirection` and the line is not run.

## Built-in commands

| Command    | What it does |
|------------|--------------|
| `cd DIR`   | Change the working directory; prints `No such directory DIR` on failure. |
| `jobs`     | List background and stopped jobs, most recent first, with their positions. |
| `fg [N]`   | Bring job `N` (default 1, the most recent) to the foreground, continuing it if it was stopped. |
| `bg [N]`   | Continue stopped job `N` (default 1) in the background. |
| `exit`     | Leave the shell. |

Any other command is looked up on `PATH` and started as a child process.
When a foreground job finishes or is stopped (Ctrl-Z), the shell prints a
line such as

```
Foreground pid: 4321, command: sleep, Exited, info: 0
```

giving how it ended (`Exited`, `Signaled`, `Suspended`) and the exit code or
signal number. A stopped job is added to the job list. Background jobs are
reported as they stop, continue or end, and are removed from the list once
they end. If a program cannot be started, the child prints an error and
exits with status 255; if a redirection file cannot be opened, it exits
with status 1.

## Using the pieces

The parsing and job-list code can be used on its own:

```python
from jobshell.parsing import parse_command, parse_redirections
from jobshell.jobs import Job, JobList, JobState

line = parse_command("sort < in.txt > out.txt &\n")
# line.args == ("sort", "<", "in.txt", ">", "out.txt"), line.background is True
redirections = parse_redirections(line.args)
# redirections.args == ("sort",), file_in "in.txt", file_out "out.txt"

jobs = JobList("job list")
jobs.add(Job(1234, "sleep", JobState.BACKGROUND))
print(jobs.format())
```

`jobshell.parsing` raises `RedirectionError` for a dangling operator.
`jobshell.jobs` also provides `analyze_status`, which turns a status from
`os.waitpid` into a `Status` and its detail, `set_terminal_signals`, and the
`blocked_signal` context manager.

`Shell` from `jobshell.shell` runs single command lines with `execute`
(returning `False` after `exit`) or reads them from a stream with `run`.
Background jobs are only collected when `reap_children` is called; the
`jobshell` command installs `handle_sigchld` as the `SIGCHLD` handler to do
this automatically.

## What it does not do

This is a deliberately small shell. It has no pipelines, no quoting other
than `\#`, no variable or wildcard expansion, no appending redirection
(`>>`), no command history or line editing, and no scripting constructs.