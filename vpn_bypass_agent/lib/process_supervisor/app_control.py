import abc
import logging
from typing import Optional

from vpn_bypass_agent.models.exceptions import ProcessControlError
from vpn_bypass_agent.models.runcommand_error import RunCommandError
from vpn_bypass_agent.utils import run_command_async


class AppController(abc.ABC):
    """Process control for the one application the supervisor manages"""

    @abc.abstractmethod
    async def graceful_quit(self) -> None:
        """Ask the application to quit. Does not wait for it."""

    @abc.abstractmethod
    async def force_kill(self) -> None:
        """Kill the application outright. Does not wait for it."""

    @abc.abstractmethod
    async def running_pid(self) -> Optional[int]:
        """PID of the running application, or None if it is not running."""

    @abc.abstractmethod
    async def launch(self) -> None:
        """Start the application. Does not wait for it."""

    @abc.abstractmethod
    async def read_bind_address(self) -> Optional[str]:
        """The persisted outbound bind address preference, if any."""

    @abc.abstractmethod
    async def write_bind_address(self, address: str) -> None:
        """Persist the outbound bind address the application reads at launch."""


class DarwinAppController(AppController):
    """Controls a macOS application by name with osascript, killall, pgrep, open and defaults"""

    def __init__(
        self,
        app_name: str,
        bundle_id: str,
        bind_address_key: str = "BindAddressIPv4",
        timeout: float = 10,
    ):
        self.logger = logging.getLogger(__name__)
        self.app_name = app_name
        self.bundle_id = bundle_id
        self.bind_address_key = bind_address_key
        self.timeout = timeout

    async def graceful_quit(self) -> None:
        try:
            await run_command_async(
                ["osascript", "-e", f'quit app "{self.app_name}"'],
                raise_on_fail=False,
                timeout=self.timeout,
            )
        except RunCommandError as e:
            self.logger.warning(f"Graceful quit request for {self.app_name} failed: {e}")

    async def force_kill(self) -> None:
        try:
            await run_command_async(
                ["killall", "-9", self.app_name], raise_on_fail=False, timeout=self.timeout
            )
        except RunCommandError as e:
            self.logger.warning(f"Force kill of {self.app_name} failed: {e}")

    async def running_pid(self) -> Optional[int]:
        try:
            result = await run_command_async(
                ["pgrep", "-x", self.app_name], raise_on_fail=False, timeout=self.timeout
            )
        except RunCommandError as e:
            raise ProcessControlError(f"Unable to query {self.app_name}: {e}") from e
        # pgrep exits 1 when nothing matches
        if result.return_code == 1:
            return None
        if not result.success:
            raise ProcessControlError(f"pgrep failed: {result.stderr.strip()}")
        pids = result.stdout.split()
        return int(pids[0]) if pids else None

    async def launch(self) -> None:
        try:
            await run_command_async(["open", "-a", self.app_name], timeout=self.timeout)
        except RunCommandError as e:
            raise ProcessControlError(f"Unable to launch {self.app_name}: {e}") from e

    async def read_bind_address(self) -> Optional[str]:
        try:
            result = await run_command_async(
                ["defaults", "read", self.bundle_id, self.bind_address_key],
                raise_on_fail=False,
                timeout=self.timeout,
            )
        except RunCommandError as e:
            raise ProcessControlError(f"Unable to read bind address: {e}") from e
        if not result.success:
            return None
        return result.stdout.strip() or None

    async def write_bind_address(self, address: str) -> None:
        try:
            await run_command_async(
                ["defaults", "write", self.bundle_id, self.bind_address_key, "-string", address],
                timeout=self.timeout,
            )
        except RunCommandError as e:
            raise ProcessControlError(f"Unable to write bind address {address}: {e}") from e
