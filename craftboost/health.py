"""Liveness probe for the platform load balancer."""
import logging

from flask import Blueprint

from craftboost import extensions

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


def _check_db():
    extensions.db.session.execute(extensions.db.text("SELECT 1"))
    return "ok"


def _check_redis():
    if not extensions.redis_client:
        return "not configured"
    extensions.redis_client.ping()
    return "ok"


PROBES = {"db": _check_db, "redis": _check_redis}


@health_bp.route("/health")
def health():
    """200 when every backing service answers, 503 otherwise.

    Probe failures are logged; the response only says ``error``.
    """
    checks = {"status": "ok"}
    for name, probe in PROBES.items():
        try:
            checks[name] = probe()
        except Exception:
            logger.exception("Health check %s probe failed", name)
            checks[name] = "error"
            checks["status"] = "degraded"
    return checks, 200 if checks["status"] == "ok" else 503
