import asyncio
import json
import logging
import os
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from vpn_bypass_agent.lib.configuration.schemas import SplitTunnelSettings
from vpn_bypass_agent.lib.desktop_notifier import DesktopNotifier
from vpn_bypass_agent.models.exceptions import SplitTunnelError
from vpn_bypass_agent.models.runcommand_error import RunCommandError
from vpn_bypass_agent.utils import run_command_async

from .settings import configs_match, dumps, extract_monitored_fields


class WatchdogResult(Enum):
    MATCH = "match"
    DRIFT_FIXED = "drift_fixed"
    DRIFT_PAUSED = "drift_paused"
    FIX_FAILED = "fix_failed"
    BACKING_OFF = "backing_off"
    UNAVAILABLE = "unavailable"


class SplitTunnelWatchdog:
    """
    Restores the VPN client's split tunnel settings when they drift from a
    saved reference.

    The client occasionally forgets its split tunnel rules, which sends every
    bypassed service through the tunnel. A pause file turns auto-restore off
    so the operator can change the settings on purpose.
    """

    def __init__(
        self,
        settings: Optional[SplitTunnelSettings] = None,
        notifier: Optional[DesktopNotifier] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.settings = settings or SplitTunnelSettings()
        self.notifier = notifier
        self.clock = clock
        self.consecutive_failures = 0
        self.backoff_until = 0.0

    @property
    def settings_path(self) -> str:
        return os.path.expanduser(self.settings.settings_path)

    @property
    def reference_path(self) -> str:
        return os.path.expanduser(self.settings.reference_path)

    @property
    def pause_path(self) -> str:
        return os.path.expanduser(self.settings.pause_path)

    @property
    def paused(self) -> bool:
        return os.path.exists(self.pause_path)

    def read_current(self) -> dict:
        """:raises SplitTunnelError: if the client's settings cannot be read"""
        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                return extract_monitored_fields(json.load(f))
        except (OSError, ValueError) as e:
            raise SplitTunnelError(f"Unable to read {self.settings_path}: {e}") from e

    def read_reference(self) -> dict:
        """:raises SplitTunnelError: if the reference is missing, empty or invalid"""
        try:
            with open(self.reference_path, "r", encoding="utf-8") as f:
                reference = json.load(f)
        except (OSError, ValueError) as e:
            raise SplitTunnelError(f"Unable to read reference {self.reference_path}: {e}") from e
        if not isinstance(reference, dict) or not reference:
            raise SplitTunnelError(f"Reference {self.reference_path} is empty")
        return reference

    def save_reference(self) -> dict:
        """
        Capture the current settings as the new reference and resume monitoring.

        :raises SplitTunnelError: if the settings cannot be read or the reference written
        """
        current = self.read_current()
        os.makedirs(os.path.dirname(self.reference_path) or ".", exist_ok=True)
        tmp_path = f"{self.reference_path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(dumps(current) + "\n")
            os.replace(tmp_path, self.reference_path)
        except OSError as e:
            raise SplitTunnelError(f"Unable to write reference {self.reference_path}: {e}") from e

        self.logger.info(f"Reference config saved to {self.reference_path}")
        for line in dumps(current).splitlines():
            self.logger.info(f"  {line}")

        if self.paused:
            try:
                os.remove(self.pause_path)
            except OSError as e:
                raise SplitTunnelError(f"Unable to remove pause file {self.pause_path}: {e}") from e
            self.logger.info("Pause file removed; monitoring resumed with new reference")
        return current

    async def check_and_fix(self) -> WatchdogResult:
        if self.clock() < self.backoff_until:
            return WatchdogResult.BACKING_OFF

        if not os.path.isfile(self.settings_path):
            self.logger.warning(
                f"VPN client settings not found at {self.settings_path}; client may not be installed"
            )
            return WatchdogResult.UNAVAILABLE

        try:
            current = self.read_current()
            reference = self.read_reference()
        except SplitTunnelError as e:
            self.logger.error(f"Cannot check for drift: {e}")
            return WatchdogResult.UNAVAILABLE

        if configs_match(current, reference):
            if self.consecutive_failures:
                self.logger.info(
                    f"Config matches reference again (was drifted for "
                    f"{self.consecutive_failures} cycle(s))"
                )
                self.consecutive_failures = 0
            return WatchdogResult.MATCH

        if self.paused:
            self.logger.info(
                f"PAUSED: drift detected but auto-restore disabled ({self.pause_path} exists)"
            )
            return WatchdogResult.DRIFT_PAUSED

        self.logger.warning("DRIFT DETECTED: split tunnel config does not match reference")
        for line in dumps(current).splitlines():
            self.logger.warning(f"  {line}")
        self._notify("VPN Config Drift", "Split tunnel config changed - attempting auto-restore")

        try:
            await self._apply(reference)
            await self._verify(reference)
        except SplitTunnelError as e:
            self.logger.error(str(e))
            return self._record_failure()

        self.logger.info("Auto-restore SUCCEEDED")
        self._notify("VPN Config Restored", "Split tunnel configuration restored from reference")
        self.consecutive_failures = 0
        return WatchdogResult.DRIFT_FIXED

    async def _apply(self, reference: dict) -> None:
        piactl = self.settings.piactl_path
        if not os.access(piactl, os.X_OK):
            raise SplitTunnelError(f"{piactl} not found; cannot auto-fix")

        self.logger.info("Applying reference config via applysettings")
        try:
            await run_command_async(
                [piactl, "-u", "applysettings", json.dumps(reference)],
                timeout=self.settings.command_timeout,
            )
        except RunCommandError as e:
            raise SplitTunnelError(f"applysettings failed: {e}") from e

        # The client only picks the settings up on reconnect
        self.logger.info("Reconnecting VPN client to apply settings")
        await self._piactl_quiet("disconnect")
        await asyncio.sleep(self.settings.reconnect_delay)
        await self._piactl_quiet("connect")
        await asyncio.sleep(self.settings.settle_delay)

    async def _piactl_quiet(self, command: str) -> None:
        try:
            await run_command_async(
                [self.settings.piactl_path, command],
                raise_on_fail=False,
                timeout=self.settings.command_timeout,
            )
        except RunCommandError as e:
            self.logger.warning(f"piactl {command} failed: {e}")

    async def _verify(self, reference: dict) -> None:
        current = self.read_current()
        if not configs_match(current, reference):
            raise SplitTunnelError("Verification FAILED: settings still do not match reference")
        self.logger.info("Verification passed: settings match reference")

    def _record_failure(self) -> WatchdogResult:
        self.consecutive_failures += 1
        self.logger.warning(
            f"Fix attempt {self.consecutive_failures}/{self.settings.max_failures} failed"
        )
        if self.consecutive_failures >= self.settings.max_failures:
            self.backoff_until = self.clock() + self.settings.backoff_seconds
            resume_at = datetime.fromtimestamp(time.time() + self.settings.backoff_seconds)
            self.logger.error(
                f"Max failures reached; backing off for {self.settings.backoff_seconds:.0f}s "
                f"(until {resume_at:%H:%M:%S})"
            )
            self._notify(
                "VPN Config Monitor",
                f"Auto-restore failed {self.settings.max_failures} times - backing off",
            )
            self.consecutive_failures = 0
        return WatchdogResult.FIX_FAILED

    def _notify(self, title: str, message: str) -> None:
        if self.notifier:
            self.notifier.notify(title, message)
