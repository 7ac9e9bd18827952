"""
External process execution.

Every native tool (flutter, xcodebuild, pod, keytool) is spawned through
CommandRunner, which streams stdout and stderr line by line to a sink while
the process runs and reports only the exit status.
"""

from __future__ import annotations

import asyncio
import shlex
from collections.abc import Sequence
from pathlib import Path

from .logging import LineSink, get_logger

logger = get_logger(__name__)

# xcodebuild emits compiler invocations far longer than asyncio's 64 KiB default
_LINE_LIMIT = 4 * 1024 * 1024


def format_command(cmd: Sequence[str], redact: Sequence[str] = ()) -> str:
    """Render a command for logs and error messages with secret values masked."""
    return " ".join("***" if part in redact else shlex.quote(part) for part in cmd)


class CommandRunner:
    """Runs external commands asynchronously with real-time output forwarding.

    There is no timeout: a hung tool hangs the run.
    """

    async def run(
        self,
        cmd: Sequence[str],
        cwd: Path | None = None,
        sink: LineSink | None = None,
        redact: Sequence[str] = (),
    ) -> int:
        """Run a command to completion.

        Args:
            cmd: Executable and arguments
            cwd: Working directory
            sink: Receives (stream_name, line) for every output line as it arrives
            redact: Argument values to mask in logs

        Returns:
            The process exit code
        """
        cmd_str = format_command(cmd, redact)
        logger.info("Running command", command=cmd_str, cwd=str(cwd) if cwd else None)

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            limit=_LINE_LIMIT,
        )

        line_counts = {"stdout": 0, "stderr": 0}

        async def read_stream(stream: asyncio.StreamReader, stream_name: str) -> None:
            while True:
                line = await stream.readline()
                if not line:
                    break
                line_counts[stream_name] += 1
                if sink is not None:
                    sink(stream_name, line.decode("utf-8", errors="replace").rstrip())

        # Drain both pipes concurrently so neither can fill up and block the child
        await asyncio.gather(
            read_stream(process.stdout, "stdout"),  # type: ignore[arg-type]
            read_stream(process.stderr, "stderr"),  # type: ignore[arg-type]
        )

        returncode = await process.wait()
        logger.info(
            "Command completed",
            command=cmd_str,
            returncode=returncode,
            stdout_lines=line_counts["stdout"],
            stderr_lines=line_counts["stderr"],
        )
        return returncode
