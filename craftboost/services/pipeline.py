"""The AI pipeline: background removal, copy generation, scene generation.

A run takes one post from ``pending`` (or ``failed``) to ``completed`` or
``failed``. Background removal and copy generation are fatal when they fail;
scene generation falls back to the background-removed image.

Every successful stage is checkpointed before the next one starts, so the
populated fields of a post show how far its last run got.
"""
import logging

from craftboost.errors import CapabilityError, PipelineBusy
from craftboost.services import copy_service, photoroom_service, stability_service

logger = logging.getLogger(__name__)

SCENE_PROMPT = (
    "A bright, sunny, minimalist playroom with natural lighting, soft shadows, "
    "and a clean aesthetic, perfect for showcasing handcrafted wooden toys."
)

CUTOUT_MIME = "image/png"

STAGE_BACKGROUND = "Background removal"
STAGE_COPY = "Caption generation"
STAGE_SCENE = "Scene generation"


class Pipeline:
    """Runs the three AI stages against posts held in a PostStore.

    The capability callables default to the real services and can be
    replaced (tests, alternative providers):

    - ``remove_background(image_bytes, mime_type) -> bytes``
    - ``generate_copy(image_bytes, mime_type) -> {title, captions, hashtags}``
    - ``generate_scene(image_bytes, prompt) -> bytes``
    """

    def __init__(
        self,
        store,
        remove_background=None,
        generate_copy=None,
        generate_scene=None,
        scene_prompt=SCENE_PROMPT,
        stale_after=600,
    ):
        self.store = store
        self.remove_background = remove_background or photoroom_service.remove_background
        self.generate_copy = generate_copy or copy_service.generate_copy
        self.generate_scene = generate_scene or stability_service.generate_scene
        self.scene_prompt = scene_prompt
        self.stale_after = stale_after

    def run(self, post_id):
        """Process a post and return it in its terminal state.

        Stage failures are recorded on the post (``status="failed"``) rather
        than raised. Any other error hands the post back to ``pending`` before
        propagating, so a retry can claim it straight away.

        Raises:
            PostNotFound: no post with this id
            PipelineBusy: another run currently holds the post
        """
        post = self.store.get(post_id)

        # Idempotency: already done
        if post.status == "completed":
            logger.info("Post %s already completed, skipping", post_id)
            return post

        if not self.store.claim(post_id, stale_after=self.stale_after):
            logger.info("Post %s is held by another run, skipping", post_id)
            raise PipelineBusy(post_id)

        try:
            return self._run_stages(post_id)
        except Exception:
            self._release(post_id)
            raise

    def _run_stages(self, post_id):
        post = self.store.get(post_id)
        original = post.original_image
        original_mime = post.original_mime

        # 1. Background removal (fatal)
        logger.info("Removing background for post %s", post_id)
        try:
            cutout = self.remove_background(original, original_mime)
        except CapabilityError as e:
            return self._fail(post_id, STAGE_BACKGROUND, e)
        self.store.update(post_id, cutout_image=cutout)

        # 2. Copy generation on the original photo (fatal)
        logger.info("Generating copy for post %s", post_id)
        try:
            copy = self.generate_copy(original, original_mime)
        except CapabilityError as e:
            return self._fail(post_id, STAGE_COPY, e)
        self.store.update(
            post_id,
            product_title=copy["title"],
            captions=copy["captions"],
            hashtags=copy["hashtags"],
        )

        # 3. Scene generation on the cutout (falls back to the cutout)
        logger.info("Generating scene for post %s", post_id)
        try:
            scene = self.generate_scene(cutout, self.scene_prompt)
        except CapabilityError as e:
            logger.warning(
                "%s failed for post %s, using background-removed image: %s",
                STAGE_SCENE,
                post_id,
                e,
            )
            scene = cutout
        self.store.update(post_id, processed_image=scene, processed_mime=CUTOUT_MIME)

        post = self.store.update(post_id, status="completed", error_message=None)
        logger.info("Post %s completed", post_id)
        return post

    def _release(self, post_id):
        try:
            self.store.release(post_id)
        except Exception:
            logger.exception("Could not release post %s after a failed run", post_id)
        else:
            logger.warning("Run for post %s died, post returned to pending", post_id)

    def _fail(self, post_id, stage, error):
        logger.error("%s failed for post %s: %s", stage, post_id, error)
        return self.store.update(
            post_id,
            status="failed",
            error_message=f"{stage} failed: {error.message}",
        )


def build_pipeline(app, store, **overrides):
    """Pipeline wired with the app's settings."""
    overrides.setdefault("stale_after", app.config["PIPELINE_STALE_AFTER"])
    return Pipeline(store, **overrides)
