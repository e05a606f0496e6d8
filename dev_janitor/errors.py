"""
Exception types raised by the detection engine.

Per-probe failures are handled inside the detector; these types mark the
seams where a failure is expected to be caught.
"""

from __future__ import annotations


class DevJanitorError(Exception):
    """
    Base exception for dev-janitor errors.

    Attributes:
        message: Human-readable error message
        remediation: Suggested fix for the error
    """
    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(message)


class CommandError(DevJanitorError):
    """
    External command could not be run to completion.

    Attributes:
        program: Program that was invoked
        timed_out: Whether the command was killed after exceeding its timeout
    """
    def __init__(self, program: str, message: str, timed_out: bool = False):
        self.program = program
        self.timed_out = timed_out
        super().__init__(f"{program}: {message}")


class ToolNotFoundError(DevJanitorError):
    """No detection rule exists for the requested tool id."""

    def __init__(self, tool_id: str):
        self.tool_id = tool_id
        super().__init__(
            f"Unknown tool: {tool_id}",
            remediation="Run 'dev-janitor --list-rules' to see known tool ids",
        )
