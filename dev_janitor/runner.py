"""
Bounded execution of external commands.

Every probe of a development tool goes through run_command(), which hides the
platform differences in how a child process is spawned and guarantees that
no call outlives its timeout.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess

from dataclasses import dataclass
from typing import Sequence

from .common import is_windows
from .errors import CommandError

logger = logging.getLogger(__name__)

# Constants
TIMEOUT_SECONDS = float(os.environ.get("DEV_JANITOR_TIMEOUT_SECONDS", "5"))
REAP_SECONDS = 1.0

# Files Windows can start without going through cmd.exe
NATIVE_SUFFIXES = frozenset({".exe", ".com"})


@dataclass(frozen=True)
class CommandResult:
    """
    Output of a command that ran to completion.

    Attributes:
        program: Program that was invoked
        stdout: Decoded standard output
        stderr: Decoded standard error
        exit_code: Process exit code
    """
    program: str
    stdout: str
    stderr: str
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def needs_interpreter(program: str) -> bool:
    """Check whether a Windows program must be started through cmd.exe.

    npm, pnpm and friends install ``.cmd`` wrappers (or extension-less shims)
    that CreateProcess cannot execute on its own.

    Args:
        program: Command name or path

    Returns:
        True if the program is not a native executable
    """
    suffix = os.path.splitext(program)[1].lower()
    return suffix not in NATIVE_SUFFIXES


def build_argv(program: str, args: Sequence[str], windows: bool | None = None) -> list[str]:
    """Build the argument vector used to spawn a program.

    Args:
        program: Command name or absolute path
        args: Arguments for the program
        windows: Force Windows behaviour (defaults to the running platform)

    Returns:
        Argument vector for subprocess
    """
    if windows is None:
        windows = is_windows()

    if windows and needs_interpreter(program):
        comspec = os.environ.get("COMSPEC", "cmd.exe")
        return [comspec, "/d", "/c", program, *args]
    return [program, *args]


def _child_env() -> dict[str, str]:
    # Disable ANSI/color output from subprocesses
    return {**os.environ, "TERM": "dumb", "NO_COLOR": "1"}


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _kill_tree(proc: subprocess.Popen) -> None:
    """Kill a child together with anything it spawned."""
    if is_windows():
        try:
            subprocess.run(
                ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                timeout=REAP_SECONDS,
                check=False,
                creationflags=subprocess.CREATE_NO_WINDOW,
            )
        except (OSError, subprocess.SubprocessError):
            pass
        proc.kill()
        return

    # start_new_session makes the child a group leader
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        proc.kill()


def _reap(proc: subprocess.Popen) -> None:
    """Collect a killed child without waiting on pipes held by escaped grandchildren."""
    try:
        proc.communicate(timeout=REAP_SECONDS)
    except subprocess.TimeoutExpired:
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        try:
            proc.wait(timeout=REAP_SECONDS)
        except subprocess.TimeoutExpired:
            logger.debug(f"Child {proc.pid} did not exit after kill")


def run_command(
    program: str,
    args: Sequence[str] = (),
    timeout: float | None = None,
) -> CommandResult:
    """Run a program and capture its output.

    Args:
        program: Command name or absolute path
        args: Arguments for the program
        timeout: Timeout in seconds (default: TIMEOUT_SECONDS)

    Returns:
        CommandResult for a process that exited on its own

    Raises:
        CommandError: If the process could not be started or timed out
    """
    timeout = timeout or TIMEOUT_SECONDS
    argv = build_argv(program, list(args))

    popen_kwargs: dict = {}
    if is_windows():
        popen_kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        popen_kwargs["start_new_session"] = True

    try:
        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,  # Isolate stdin
            env=_child_env(),
            **popen_kwargs,
        )
    except (OSError, ValueError) as e:
        raise CommandError(program, f"failed to start: {e}") from e

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_tree(proc)
        _reap(proc)
        raise CommandError(program, f"timed out after {timeout:g}s", timed_out=True)

    result = CommandResult(
        program=program,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        exit_code=proc.returncode,
    )
    logger.debug(f"{' '.join(argv)} exited with {result.exit_code}")
    return result
