"""
Planification du rafraichissement du cache (APScheduler).

Deux jobs :
- quotidien (cron, 02:00 dans le fuseau configure) : passe complete
- demarrage (date, quelques secondes apres init) : premiere passe

Les deux jobs passent par refresh_working_set : si une passe est deja en
cours, le declenchement est ignore par l'orchestrateur.
"""

from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from loguru import logger

from bangumi_list.services.catalog import CatalogService
from bangumi_list.services.orchestrator import RefreshOrchestrator

DAILY_JOB_ID = "cache_refresh_daily"
STARTUP_JOB_ID = "cache_refresh_startup"


class CacheRefreshScheduler:
    """Jobs periodiques de rafraichissement du cache d'enrichissement."""

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        catalog: CatalogService,
        timezone: str = "Asia/Shanghai",
        cron_hour: int = 2,
        cron_minute: int = 0,
        startup_delay: float = 1.0,
    ) -> None:
        self._orchestrator = orchestrator
        self._catalog = catalog
        self._tz = ZoneInfo(timezone)
        self._cron_hour = cron_hour
        self._cron_minute = cron_minute
        self._startup_delay = startup_delay
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self, run_at_startup: bool = True) -> None:
        """Demarre le scheduler (doit etre appele depuis la boucle asyncio)."""
        if self.running:
            return
        self._scheduler = AsyncIOScheduler(
            timezone=self._tz,
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler.add_job(
            self._run_refresh,
            trigger=CronTrigger(hour=self._cron_hour, minute=self._cron_minute, timezone=self._tz),
            id=DAILY_JOB_ID,
            name="Daily cache refresh",
            replace_existing=True,
        )
        if run_at_startup:
            self._scheduler.add_job(
                self._run_refresh,
                trigger=DateTrigger(
                    run_date=datetime.now(self._tz) + timedelta(seconds=self._startup_delay),
                    timezone=self._tz,
                ),
                id=STARTUP_JOB_ID,
                name="Startup cache refresh",
                replace_existing=True,
            )
        self._scheduler.start()
        logger.info(
            f"[Cache] Rafraichissement planifie tous les jours a "
            f"{self._cron_hour:02d}:{self._cron_minute:02d} ({self._tz.key})"
        )

    async def _run_refresh(self) -> None:
        logger.info(
            f"[Cache] Rafraichissement planifie: saisons {self._catalog.current_season()} "
            f"et {self._catalog.previous_season()}"
        )
        try:
            await self._orchestrator.refresh_working_set()
        except Exception:
            logger.exception("[Cache] Rafraichissement planifie en echec")

    def shutdown(self) -> None:
        """Arrete le scheduler et supprime ses jobs."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("[Cache] Scheduler de rafraichissement arrete")
        self._scheduler = None
