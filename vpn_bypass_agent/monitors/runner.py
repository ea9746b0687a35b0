import asyncio
import logging
import signal
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from vpn_bypass_agent.lib.configuration.schemas import AgentConfig
from vpn_bypass_agent.lib.tasker.repeating_task import RepeatingTask

logger = logging.getLogger(__name__)


def check_intervals(config: AgentConfig) -> bool:
    """Warn when the tunnel watch would react slower than the bypass loop."""
    tunnel = config.TunnelWatch.poll_interval
    bypass = config.Bypass.poll_interval
    if tunnel >= bypass:
        logger.warning(
            f"Tunnel watch interval ({tunnel}s) should be shorter than the bypass "
            f"interval ({bypass}s); a dropped VPN may go unnoticed for too long"
        )
        return False
    return True


class MonitorRunner:
    """
    Drives one monitor's ``tick`` on an interval until SIGINT/SIGTERM.

    Shutdown only stops the scheduler. Firewall rules and the managed
    application are left as they are.
    """

    def __init__(self, name: str, tick: Callable[[], Awaitable], interval: float):
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.tick = tick
        self.interval = interval
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.task: Optional[RepeatingTask] = None
        self._stopping: Optional[asyncio.Event] = None

    def request_stop(self, signum: Optional[int] = None) -> None:
        if signum is not None:
            self.logger.info(f"{self.name} stopping ({signal.Signals(signum).name} received)")
        if self._stopping is not None:
            self._stopping.set()

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        self._stopping = asyncio.Event()
        installed = []
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.request_stop, signum)
                installed.append(signum)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not available off the main thread or on some platforms
                self.logger.debug(f"Unable to install handler for signal {signum}")

        self.scheduler = AsyncIOScheduler()
        self.scheduler.start()
        self.task = RepeatingTask(
            scheduler=self.scheduler,
            type="Monitor",
            identifier=self.name,
            task_executor=self.tick,
            interval=self.interval,
        )
        self.logger.info(f"{self.name} started (poll interval {self.interval}s)")
        try:
            await self._stopping.wait()
        finally:
            self.task.end_task()
            self.scheduler.shutdown(wait=False)
            for signum in installed:
                loop.remove_signal_handler(signum)
            self.logger.info(f"{self.name} stopped")

    def run_forever(self) -> int:
        try:
            asyncio.run(self.run())
        except KeyboardInterrupt:
            self.logger.info(f"{self.name} interrupted")
        return 0


def run_monitor(name: str, tick: Callable[[], Awaitable], interval: float) -> int:
    return MonitorRunner(name, tick, interval).run_forever()
