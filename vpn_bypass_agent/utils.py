import asyncio
import logging
import socket
from typing import Optional

from vpn_bypass_agent.models.command_result import CommandResult
from vpn_bypass_agent.models.runcommand_error import RunCommandError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 10.0


async def run_command_async(
    cmd: list,
    input: Optional[str] = None,
    raise_on_fail: bool = True,
    timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT,
) -> CommandResult:
    """
    Run a single CLI command without blocking the event loop.

    The command is killed if it does not finish within ``timeout`` seconds.
    :raises RunCommandError: if the command fails, cannot be found or times out
    """
    logger.debug(f"Running command: {cmd}")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        raise RunCommandError(str(e), None, cmd) from e

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(input.encode("utf-8") if input is not None else None),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise RunCommandError(f"Timed out after {timeout}s", None, cmd) from e

    result = CommandResult(
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
        process.returncode,
    )
    if raise_on_fail and not result.success:
        raise RunCommandError(result.stderr, result.return_code, cmd)
    return result


def get_hostname() -> str:
    return socket.gethostname().split(".")[0]
