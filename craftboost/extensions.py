import logging
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
import redis as _redis
from rq import Queue

logger = logging.getLogger(__name__)

db = SQLAlchemy()
migrate = Migrate()

# Initialized lazily in create_app
redis_client: _redis.Redis = None  # type: ignore
task_queue: Queue = None  # type: ignore


class DummyQueue:
    """Stands in for the RQ queue when Redis is unavailable.

    Jobs are dropped; the post stays pending and can still be processed
    through POST /api/process or the ``process-post`` command.
    """

    def enqueue(self, func, *args, **kwargs):
        logger.warning(
            "Redis not available, dropping job %s%s",
            kwargs.get("job_id") or func,
            args,
        )
        return None


def init_redis(app):
    global redis_client, task_queue
    redis_url = app.config.get("REDIS_URL", "")
    if not redis_url:
        logger.warning("REDIS_URL not set, pipeline queue disabled")
        redis_client = None
        task_queue = DummyQueue()
        return

    try:
        redis_client = _redis.from_url(redis_url, decode_responses=False)
        redis_client.ping()
        task_queue = Queue(app.config["PIPELINE_QUEUE"], connection=redis_client)
    except _redis.RedisError as e:
        logger.warning("Redis connection failed (%s), pipeline queue disabled", e)
        redis_client = None
        task_queue = DummyQueue()


def get_post_store():
    """Return the PostStore owned by the current app."""
    from flask import current_app

    return current_app.extensions["post_store"]
