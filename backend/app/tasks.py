"""Producers for the arq queue consumed by ``app.worker``."""

from typing import Any
from uuid import UUID

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from app.core.config import settings

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Queue ``task_name`` on the worker. A fresh pool is opened per call and always closed."""
    pool = await get_redis_pool()
    try:
        return await pool.enqueue_job(task_name, *args, **kwargs)  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_deliver_email(email_log_id: UUID) -> Job:
    # Job arguments are pickled; pass the id as a plain string
    return await enqueue_task("deliver_email_task", str(email_log_id))


async def enqueue_retry_failed_emails() -> Job:
    return await enqueue_task("retry_failed_emails_task")
