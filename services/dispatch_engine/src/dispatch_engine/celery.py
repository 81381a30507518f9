"""Celery application setup and worker initialization."""

import logging

from celery import Celery, signals

from dispatch_engine.config import CeleryConfig, DispatchConfig
from dispatch_engine.engine import DispatchEngine, build_engine
from dispatch_engine.log import setup_logging

logger = logging.getLogger(__name__)

celery_config = CeleryConfig()

app = Celery("dispatch_engine", broker=celery_config.broker_url)

app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="notifications",
)

app.autodiscover_tasks(["dispatch_engine"])


@signals.worker_init.connect
def _init_worker(**_kwargs: object) -> None:
    """Build one dispatch engine per worker process."""
    dispatch_config = DispatchConfig()
    setup_logging(dispatch_config.log_level)

    app.conf.update(_dispatch_engine=build_engine(dispatch_config))
    logger.info("Worker initialized")


@signals.worker_shutdown.connect
def _shutdown_worker(**_kwargs: object) -> None:
    engine: DispatchEngine | None = getattr(app.conf, "_dispatch_engine", None)
    if engine is not None:
        engine.close()
    logger.info("Worker shut down")
