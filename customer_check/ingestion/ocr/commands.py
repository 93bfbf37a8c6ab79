from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from customer_check.errors import OcrError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


async def run_command(*args: str, check: bool = True) -> CommandResult:
    """Run an external binary without blocking the event loop.

    A missing binary raises ``OcrError``; so does a non-zero exit when
    ``check`` is set. The child is killed if the caller is cancelled.
    """
    logger.debug("Running %s", " ".join(args))
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise OcrError(f"{args[0]} not found on PATH") from e

    try:
        out, err = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    result = CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=out.decode("utf-8", errors="replace"),
        stderr=err.decode("utf-8", errors="replace"),
    )
    if check and result.returncode != 0:
        raise OcrError(f"{args[0]} error: exit status {result.returncode}: {result.stderr.strip()}")
    return result
