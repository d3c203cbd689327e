"""Async subprocess execution for the ``gh`` CLI.

Commands run through ``asyncio.create_subprocess_exec`` so a slow
``gh auth status`` does not stall the event loop. Interactive commands
(``gh auth login``, ``gh auth refresh``) are run with ``capture_output=False``
so they inherit the user's terminal.
"""

import asyncio
import subprocess
from typing import NamedTuple


class CommandResult(NamedTuple):
    """Decoded output of a finished command."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def output(self) -> str:
        """stdout and stderr combined; ``gh auth status`` writes to either."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


async def run_command(
    *args: str,
    check: bool = True,
    capture_output: bool = True,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command without shell interpolation.

    Args:
        *args: Executable and its arguments, e.g. ``"gh", "auth", "token"``.
        check: Raise CalledProcessError on a non-zero exit code.
        capture_output: Capture stdout/stderr; when False the child shares
            the parent's terminal and the returned strings are empty.
        timeout: Seconds to wait before killing the process.

    Raises:
        subprocess.CalledProcessError: If check=True and the command failed.
        TimeoutError: If the timeout was exceeded; the process is killed.
        FileNotFoundError: If the executable does not exist.
    """
    pipe = asyncio.subprocess.PIPE if capture_output else None
    process = await asyncio.create_subprocess_exec(*args, stdout=pipe, stderr=pipe)

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    result = CommandResult(
        stdout=(stdout_bytes or b"").decode("utf-8", errors="replace"),
        stderr=(stderr_bytes or b"").decode("utf-8", errors="replace"),
        returncode=process.returncode or 0,
    )

    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(result.returncode, args, result.stdout, result.stderr)

    return result
