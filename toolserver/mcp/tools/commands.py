"""Process execution tool."""

from __future__ import annotations

import subprocess

from pydantic import BaseModel, Field

from ..catalog import catalog


class ExecuteCommandInput(BaseModel):
    command: str = Field(..., description="Command to execute")
    args: list[str] = Field(default_factory=list, description="Command arguments (optional)")
    dir: str | None = Field(None, description="Working directory (optional)")


@catalog.tool(
    name="execute_command",
    description="Executes a shell command and returns the output",
    args_model=ExecuteCommandInput,
)
def execute_command(request: ExecuteCommandInput) -> str:
    """
    Run ``command`` with ``args`` directly, without a shell.

    A non-zero exit status is still a successful invocation: the exit code,
    stdout and stderr are reported in the text. Only a process that cannot be
    started at all (missing program, bad working directory) raises.
    """

    completed = subprocess.run(
        [request.command, *request.args],
        cwd=request.dir,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=False,
    )
    if completed.returncode == 0:
        return f"Command executed successfully:\n{completed.stdout}"
    return (
        f"Command failed with exit code {completed.returncode}:\n"
        f"STDOUT: {completed.stdout}\n"
        f"STDERR: {completed.stderr}"
    )
