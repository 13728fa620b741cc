from datetime import timedelta

from apscheduler.schedulers.blocking import (  # type: ignore[import-untyped]
    BlockingScheduler,
)
from apscheduler.triggers.cron import CronTrigger  # type: ignore[import-untyped]

from cineverse.core.config import settings


def cleanup_expired_movies() -> int:
    from cineverse.logging_.logger import setup_logger
    from cineverse.metadata.factory import get_default_resolver
    from cineverse.services import movies as movies_service

    logger = setup_logger("cleanup")
    deleted = movies_service.cleanup_expired_movies(
        resolver=get_default_resolver(),
        grace=timedelta(days=settings.MOVIE_CLEANUP_GRACE_DAYS),
    )
    logger.info(f"Expired movie cleanup removed {deleted} records")
    return deleted


def build_scheduler() -> BlockingScheduler:
    scheduler = BlockingScheduler()
    scheduler.add_job(
        func=cleanup_expired_movies,
        trigger=CronTrigger(hour=4, minute=0),
        id="nightly_movie_cleanup",
    )
    return scheduler


if __name__ == "__main__":
    build_scheduler().start()
