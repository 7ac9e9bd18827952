"""
Async text file helpers.

Config artifacts are read and written with newline translation disabled so that
substitutions leave every unrelated byte, line endings included, untouched.
"""

from __future__ import annotations

from pathlib import Path

import aiofiles


async def read_text(path: Path) -> str:
    """Read a UTF-8 text file without newline translation."""
    async with aiofiles.open(path, "r", encoding="utf-8", newline="") as f:
        return await f.read()


async def write_text(path: Path, content: str) -> None:
    """Write a UTF-8 text file without newline translation, creating parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
        await f.write(content)
