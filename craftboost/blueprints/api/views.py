"""JSON API: uploads, gallery listing, edits and the pipeline trigger."""
import io
import logging

from flask import abort, current_app, request, send_file
from rq import Retry
from werkzeug.exceptions import HTTPException

from craftboost import extensions
from craftboost.blueprints.api import api_bp
from craftboost.config import CAPABILITY_SETTINGS, require_settings
from craftboost.errors import CraftBoostError, InvalidRequest, PipelineBusy
from craftboost.extensions import get_post_store
from craftboost.models.post import Post
from craftboost.services import image_service
from craftboost.services.copy_service import CAPTION_COUNT, normalize_hashtags
from craftboost.services.pipeline import build_pipeline

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"productTitle", "captions", "hashtags"}


@api_bp.route("/process", methods=["POST"])
def process():
    """Run the AI pipeline for ``{"postId": ...}``.

    200 with the post when it completed (or already was), 502 when a stage
    failed the post, 404/409 when the post is missing or already running.
    """
    post_id = _json_object().get("postId")
    if not post_id or not isinstance(post_id, str):
        raise InvalidRequest("Missing required field: postId")

    store = get_post_store()
    post = store.get(post_id)
    if post.status != "completed":
        require_settings(current_app.config, *CAPABILITY_SETTINGS)

    post = build_pipeline(current_app, store).run(post_id)

    if post.status == "failed":
        return {
            "error": post.error_message,
            "code": "CAPABILITY_ERROR",
            "post": post.to_dict(),
        }, 502
    return post.to_dict()


@api_bp.route("/posts", methods=["POST"])
def create_post():
    """Upload a product photo as a new pending post.

    Accepts a multipart ``image`` file or JSON ``{"image": "data:..."}``.
    With ``?process=queue`` the pipeline is enqueued for the worker.
    """
    try:
        image_bytes = image_service.validate_image(_read_upload())
    except ValueError as e:
        raise InvalidRequest(str(e))

    post = get_post_store().create(original_image=image_bytes, original_mime="image/jpeg")
    logger.info("Created post %s (%d bytes)", post.id, len(image_bytes))

    if request.args.get("process") == "queue":
        _enqueue_pipeline(post.id)

    return post.to_dict(), 201


@api_bp.route("/posts", methods=["GET"])
def list_posts():
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", current_app.config["POSTS_PAGE_SIZE"], type=int)
    status = request.args.get("status") or None

    try:
        result = get_post_store().list(page=page, page_size=limit, status=status)
    except ValueError as e:
        raise InvalidRequest(str(e))

    return {
        "posts": [post.to_dict() for post in result["items"]],
        "total": result["total"],
        "page": result["page"],
        "totalPages": result["totalPages"],
    }


@api_bp.route("/posts/<post_id>", methods=["GET"])
def get_post(post_id):
    return get_post_store().get(post_id).to_dict()


@api_bp.route("/posts/<post_id>", methods=["PATCH"])
def edit_post(post_id):
    """Edit the generated copy. Not allowed while a run holds the post."""
    store = get_post_store()
    post = store.get(post_id)
    if post.status == "processing":
        raise PipelineBusy(post_id)

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequest("Expected a JSON object")
    unknown = set(data) - EDITABLE_FIELDS
    if unknown:
        raise InvalidRequest(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    changes = {}
    if "productTitle" in data:
        title = data["productTitle"]
        if not isinstance(title, str) or not title.strip():
            raise InvalidRequest("productTitle must be a non-empty string")
        changes["product_title"] = title.strip()[:255]
    if "captions" in data:
        captions = data["captions"]
        if (
            not isinstance(captions, list)
            or len(captions) != CAPTION_COUNT
            or not all(isinstance(c, str) and c.strip() for c in captions)
        ):
            raise InvalidRequest(f"captions must be a list of {CAPTION_COUNT} non-empty strings")
        changes["captions"] = [c.strip() for c in captions]
    if "hashtags" in data:
        hashtags = normalize_hashtags(data["hashtags"])
        if not hashtags:
            raise InvalidRequest("hashtags must contain at least one tag")
        changes["hashtags"] = hashtags

    if not changes:
        raise InvalidRequest("Nothing to update")
    return store.update(post_id, **changes).to_dict()


@api_bp.route("/posts/<post_id>", methods=["DELETE"])
def delete_post(post_id):
    store = get_post_store()
    if store.get(post_id).status == "processing":
        raise PipelineBusy(post_id)
    return store.delete(post_id)


@api_bp.route("/posts/<post_id>/image/<kind>")
def post_image(post_id, kind):
    """Raw image bytes, ``kind`` is ``original`` or ``processed``."""
    post = get_post_store().get(post_id)
    if kind == "original":
        data, mime = post.original_image, post.original_mime
    elif kind == "processed" and post.processed_image is not None:
        data, mime = post.processed_image, post.processed_mime or "image/png"
    else:
        abort(404)
    return send_file(io.BytesIO(data), mimetype=mime, max_age=3600)


@api_bp.route("/statuses")
def statuses():
    """Icon and label for every post status."""
    return {status: Post.STATUS_BADGES[status] for status in Post.STATUSES}


@api_bp.errorhandler(Exception)
def handle_error(e):
    if isinstance(e, HTTPException):
        code = e.name.upper().replace(" ", "_")
        return {"error": e.description, "code": code, "details": {}}, e.code
    if isinstance(e, CraftBoostError):
        return e.to_dict(), e.status_code
    logger.exception("Unhandled API error")
    return {"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}, 500


def _json_object():
    """The JSON request body as a dict; an empty or non-JSON body reads as ``{}``."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest("Expected a JSON object")
    return data


def _read_upload():
    upload = request.files.get("image")
    if upload is not None:
        return upload.read()

    data_uri = _json_object().get("image")
    if not data_uri or not isinstance(data_uri, str):
        raise InvalidRequest("Missing image: send a multipart 'image' file or a data URI")
    image_bytes, _mime = image_service.parse_data_uri(data_uri)
    return image_bytes


def _enqueue_pipeline(post_id):
    return extensions.task_queue.enqueue(
        "craftboost.workers.pipeline_job.process_post",
        post_id,
        job_id=f"pipeline_{post_id}",
        retry=Retry(max=2, interval=[30, 120]),
    )
