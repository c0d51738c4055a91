"""RQ worker job: run the AI pipeline for an uploaded post."""
import logging

from flask import current_app, has_app_context

from craftboost import create_app
from craftboost.config import CAPABILITY_SETTINGS, require_settings
from craftboost.errors import PipelineBusy, PostNotFound
from craftboost.extensions import get_post_store
from craftboost.services.pipeline import build_pipeline

logger = logging.getLogger(__name__)

_worker_app = None


def _get_app():
    """Return an app instance for worker execution.

    Reuse the current app when already inside an app context (tests/CLI),
    otherwise lazily create the worker app once.
    """
    global _worker_app
    if has_app_context():
        return current_app._get_current_object()
    if _worker_app is None:
        _worker_app = create_app()
    return _worker_app


def process_post(post_id):
    """Run the pipeline for ``post_id`` and return its final status.

    Enqueued by the upload endpoint. Stage failures end up on the post, so
    only unexpected errors are raised (and retried by RQ). A missing post or
    a run already in progress is logged and skipped.
    """
    app = _get_app()
    with app.app_context():
        require_settings(app.config, *CAPABILITY_SETTINGS)
        pipeline = build_pipeline(app, get_post_store())
        try:
            post = pipeline.run(post_id)
        except PostNotFound:
            logger.error("Post %s not found", post_id)
            return None
        except PipelineBusy:
            logger.info("Post %s is already being processed, skipping", post_id)
            return None

        logger.info("Pipeline finished for post %s: %s", post_id, post.status)
        return post.status
