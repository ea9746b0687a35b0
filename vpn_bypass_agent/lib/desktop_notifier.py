import asyncio
import logging
import shutil
from typing import Optional

from vpn_bypass_agent.models.runcommand_error import RunCommandError
from vpn_bypass_agent.utils import run_command_async


class DesktopNotifier:
    """
    Best-effort desktop notifications through terminal-notifier.

    Notifications are fire-and-forget: they never raise and never block the
    caller for longer than it takes to schedule the subprocess.
    """

    def __init__(
        self,
        group: str,
        sender: Optional[str] = None,
        run_as_user: Optional[str] = None,
        timeout: float = 5,
    ):
        self.logger = logging.getLogger(__name__)
        self.group = group
        self.sender = sender
        self.run_as_user = run_as_user or None
        self.timeout = timeout
        self._pending: set[asyncio.Task] = set()

    def build_command(self, title: str, message: str) -> list[str]:
        cmd = ["terminal-notifier", "-title", title, "-message", message, "-group", self.group]
        if self.sender:
            cmd += ["-sender", self.sender]
        if self.run_as_user:
            # The privileged loop delivers to the operator's session, with their PATH
            cmd = ["sudo", "-iu", self.run_as_user] + cmd
        return cmd

    def available(self) -> bool:
        # With run_as_user the lookup happens in the operator's login shell instead
        return bool(self.run_as_user) or shutil.which("terminal-notifier") is not None

    async def send(self, title: str, message: str) -> None:
        if not self.available():
            return
        try:
            await run_command_async(self.build_command(title, message), timeout=self.timeout)
        except RunCommandError as e:
            self.logger.debug(f"Notification not delivered: {e}")

    def notify(self, title: str, message: str) -> None:
        """Schedule a notification without waiting for it."""
        try:
            task = asyncio.get_running_loop().create_task(self.send(title, message))
        except RuntimeError:
            self.logger.debug("No running event loop; notification dropped")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
