import asyncio
import inspect
import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler


class RepeatingTask:
    """
    Runs a callable on an interval through an AsyncIOScheduler.

    Runs never overlap: a tick that is still going when the next one is due
    makes the scheduler skip, and missed runs collapse into one.
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        type: str,
        identifier: str,
        task_executor: Callable,
        interval: float,
        start_date: Optional[datetime] = None,
        run_immediately: bool = True,
    ):
        self.type = type
        self.identifier = identifier
        self.scheduler = scheduler
        self.ident_name = f"{self.__class__.__name__}:{self.type}:{self.identifier}"
        self.logger = logging.getLogger(self.ident_name)
        self.logger.info(f"Initializing {self.ident_name}")

        self.start_date = start_date
        self.interval = interval
        self.task_executor = task_executor

        job_kwargs = {}
        if run_immediately:
            job_kwargs["next_run_time"] = datetime.now()

        self.job = self.scheduler.add_job(
            self.run_once,
            "interval",
            name=self.ident_name,
            seconds=self.interval,
            start_date=self.start_date,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=max(1, int(self.interval / 2)),
            **job_kwargs,
        )

    def end_task(self):
        try:
            self.job.remove()
        except JobLookupError:
            self.logger.warning(
                f"Error looking up job while ending task {self.identifier}. It was probably already removed."
            )
        self.logger.info(f"Task ended: {self.identifier}")

    async def run_once(self):
        try:
            res = self.task_executor()
            if inspect.isawaitable(res):
                res = await res
            self.logger.debug(f"Task complete: {res}")
        except asyncio.CancelledError:
            raise
        except Exception:
            # Anything escaping here would stop the job
            self.logger.exception("Error in task execution")
