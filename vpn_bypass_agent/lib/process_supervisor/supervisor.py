import asyncio
import logging
from datetime import datetime
from typing import Optional

from vpn_bypass_agent.lib.configuration.schemas import TunnelWatchSettings
from vpn_bypass_agent.lib.desktop_notifier import DesktopNotifier
from vpn_bypass_agent.lib.network_probe.domain import NetworkSnapshot
from vpn_bypass_agent.models.exceptions import ProcessControlError

from .app_control import AppController
from .domain import ManagedProcessState, SupervisorAction, SupervisorState

EXIT_POLL_STEP = 1.0


class ProcessSupervisor:
    """
    Keeps one application running only while the tunnel is up, bound to the
    tunnel address.

    Whenever the supervisor believes the application is stopped it looks at
    the OS before acting. That covers adopting an instance that is already
    bound correctly when the agent starts, and killing instances someone else
    started while the tunnel is down.
    """

    def __init__(
        self,
        app_controller: AppController,
        settings: Optional[TunnelWatchSettings] = None,
        notifier: Optional[DesktopNotifier] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or TunnelWatchSettings()
        self.logger.info(f"Initializing {__name__} for {self.settings.app_name}")
        self.app = app_controller
        self.notifier = notifier
        self.state = ManagedProcessState()

    @property
    def app_name(self) -> str:
        return self.settings.app_name

    async def handle(self, snapshot: NetworkSnapshot) -> SupervisorAction:
        """Drive the application towards the state the snapshot calls for. Never raises."""
        try:
            if snapshot.tunnel_ip is None:
                return await self._on_tunnel_down()
            return await self._on_tunnel_up(snapshot.tunnel_ip)
        except ProcessControlError as e:
            self.logger.error(f"Process control failed, will retry next tick: {e}")
            return SupervisorAction.FAILED

    async def _on_tunnel_down(self) -> SupervisorAction:
        if self.state.tunnel_down_since is None:
            self.state.tunnel_down_since = datetime.now()
            self.logger.warning("VPN DOWN detected")
            self._notify("VPN Down", f"VPN connection lost - stopping {self.app_name}")

        if self.state.state is SupervisorState.STOPPED:
            if not await self._is_running():
                return SupervisorAction.NONE
            self.logger.warning(f"{self.app_name} is running while the VPN is down")

        if not await self._terminate():
            return SupervisorAction.FAILED
        await self._park_bind_address()
        return SupervisorAction.TERMINATED

    async def _on_tunnel_up(self, tunnel_ip: str) -> SupervisorAction:
        if self.state.tunnel_down_since is not None:
            outage = (datetime.now() - self.state.tunnel_down_since).total_seconds()
            self.logger.info(f"VPN RESTORED with IP {tunnel_ip} after {outage:.0f}s")
            self._notify("VPN Restored", f"VPN reconnected with IP {tunnel_ip}")
            self.state.tunnel_down_since = None

        if self.state.state is SupervisorState.RUNNING_BOUND:
            if self.state.desired_bind_ip == tunnel_ip:
                return SupervisorAction.NONE
            self.logger.warning(
                f"VPN IP changed from {self.state.desired_bind_ip} to {tunnel_ip}"
            )
            self._notify("VPN IP Changed", f"Restarting {self.app_name} on {tunnel_ip}")
            if not await self._terminate():
                return SupervisorAction.FAILED
            return await self._bind_and_launch(tunnel_ip, SupervisorAction.REBOUND)

        # Adopting needs a confirmed PID; an unknown answer is retried next tick
        try:
            pid = await self.app.running_pid()
        except ProcessControlError as e:
            self.logger.warning(f"Unable to check whether {self.app_name} is running: {e}")
            return SupervisorAction.FAILED

        if pid is not None:
            bound = await self.app.read_bind_address()
            if bound == tunnel_ip:
                self.logger.info(f"{self.app_name} already running bound to {tunnel_ip}")
                self.state.running = True
                self.state.desired_bind_ip = tunnel_ip
                return SupervisorAction.ADOPTED
            self.logger.warning(
                f"{self.app_name} running bound to {bound or '<unknown>'}, not {tunnel_ip}"
            )
            self.state.running = True
            self.state.desired_bind_ip = bound
            if not await self._terminate():
                return SupervisorAction.FAILED
            return await self._bind_and_launch(tunnel_ip, SupervisorAction.REBOUND)

        return await self._bind_and_launch(tunnel_ip, SupervisorAction.LAUNCHED)

    async def _is_running(self) -> bool:
        try:
            return await self.app.running_pid() is not None
        except ProcessControlError as e:
            # Unknown counts as running so it gets killed rather than leaked
            self.logger.warning(f"Unable to check whether {self.app_name} is running: {e}")
            return True

    async def _wait_for_exit(self, timeout: float) -> bool:
        waited = 0.0
        while True:
            if not await self._is_running():
                return True
            if waited >= timeout:
                return False
            step = min(EXIT_POLL_STEP, timeout - waited)
            await asyncio.sleep(step)
            waited += step

    async def _terminate(self) -> bool:
        """Stop the application, escalating to a force kill. Returns True once verified gone."""
        if not await self._is_running():
            self.logger.info(f"{self.app_name} is not running")
            self.state.running = False
            return True

        self.logger.info(f"Killing {self.app_name}")
        await self.app.graceful_quit()
        if await self._wait_for_exit(self.settings.graceful_timeout):
            self.logger.info(f"{self.app_name} quit gracefully")
            self.state.running = False
            return True

        self.logger.warning(
            f"Graceful quit failed after {self.settings.graceful_timeout}s, force-killing"
        )
        await self.app.force_kill()
        if await self._wait_for_exit(self.settings.force_kill_wait):
            self.logger.info(f"{self.app_name} force-killed")
            self.state.running = False
            return True

        self.logger.error(f"{self.app_name} is still running after force kill")
        return False

    async def _park_bind_address(self) -> None:
        parked = self.settings.parked_bind_address
        if not parked:
            return
        try:
            await self.app.write_bind_address(parked)
            self.state.desired_bind_ip = None
            self.logger.info(f"Bind address parked on {parked}")
        except ProcessControlError as e:
            self.logger.warning(f"Unable to park bind address: {e}")

    async def _bind_and_launch(self, tunnel_ip: str, success: SupervisorAction) -> SupervisorAction:
        try:
            await self.app.write_bind_address(tunnel_ip)
        except ProcessControlError as e:
            self.logger.error(f"Not launching {self.app_name}, bind address not set: {e}")
            return SupervisorAction.FAILED
        self.state.desired_bind_ip = tunnel_ip
        self.logger.info(f"Bind address set to {tunnel_ip}")

        for attempt in range(1, self.settings.launch_attempts + 1):
            self.logger.info(f"Launching {self.app_name} (attempt {attempt})")
            try:
                await self.app.launch()
            except ProcessControlError as e:
                self.logger.warning(str(e))
            await asyncio.sleep(self.settings.launch_verify_delay)
            try:
                pid = await self.app.running_pid()
            except ProcessControlError as e:
                self.logger.warning(f"Unable to verify launch: {e}")
                pid = None
            if pid is not None:
                self.logger.info(f"{self.app_name} launched (PID: {pid})")
                self.state.running = True
                return success
            self.logger.warning(f"{self.app_name} did not start")

        self.logger.error(f"Failed to launch {self.app_name}, will retry next tick")
        return SupervisorAction.FAILED

    def _notify(self, title: str, message: str) -> None:
        if self.notifier:
            self.notifier.notify(title, message)
