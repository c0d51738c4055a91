"""Persistence for Post records.

The application factory builds one PostStore and keeps it in
``app.extensions["post_store"]``; everything else receives it explicitly.
Every write commits, so each call is one durable checkpoint.
"""
import math
from datetime import datetime, timedelta, timezone

from craftboost.errors import PostNotFound
from craftboost.models.post import Post

UPDATABLE_FIELDS = {
    "cutout_image",
    "processed_image",
    "processed_mime",
    "product_title",
    "captions",
    "hashtags",
    "status",
    "error_message",
}

# Fields produced by a pipeline run; reset whenever a new run claims the post.
RUN_OUTPUT_FIELDS = {
    "cutout_image": None,
    "processed_image": None,
    "processed_mime": None,
    "product_title": None,
    "captions": [],
    "hashtags": [],
    "error_message": None,
}


class PostStore:
    def __init__(self, db):
        self.db = db

    def create(self, original_image, original_mime="image/jpeg", **fields):
        """Insert a new post. Status defaults to ``pending``."""
        status = fields.pop("status", "pending")
        _check_status(status)
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown post field(s): {', '.join(sorted(unknown))}")

        post = Post(
            original_image=original_image,
            original_mime=original_mime,
            status=status,
            captions=fields.pop("captions", None) or [],
            hashtags=fields.pop("hashtags", None) or [],
            **fields,
        )
        self.db.session.add(post)
        self.db.session.commit()
        return post

    def get(self, post_id):
        post = self.db.session.get(Post, post_id) if post_id else None
        if post is None:
            raise PostNotFound(post_id)
        return post

    def update(self, post_id, **fields):
        """Merge ``fields`` into the post and refresh ``updated_at``."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown post field(s): {', '.join(sorted(unknown))}")
        if "status" in fields:
            _check_status(fields["status"])

        post = self.get(post_id)
        for key, value in fields.items():
            # JSON columns only detect reassignment, never in-place mutation.
            if key in ("captions", "hashtags"):
                value = list(value or [])
            setattr(post, key, value)
        post.updated_at = datetime.now(timezone.utc)
        self.db.session.commit()
        return post

    def delete(self, post_id):
        post = self.get(post_id)
        self.db.session.delete(post)
        self.db.session.commit()
        return {"success": True, "id": post_id}

    def list(self, page=1, page_size=12, status=None):
        """Newest-first page of posts, optionally filtered by status."""
        if status is not None:
            _check_status(status)
        page = max(int(page), 1)
        page_size = max(int(page_size), 1)

        query = Post.query
        if status:
            query = query.filter_by(status=status)

        total = query.count()
        items = (
            query.order_by(Post.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {
            "items": items,
            "total": total,
            "page": page,
            "totalPages": math.ceil(total / page_size),
        }

    def claim(self, post_id, stale_after=600):
        """Atomically move a post into ``processing`` for a new run.

        Matches posts that are ``pending`` or ``failed``, and ``processing``
        posts whose last checkpoint is older than ``stale_after`` seconds
        (their run died). Returns False when nothing matched, i.e. another
        run is active or the post is already completed.
        """
        now = datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=stale_after)
        stmt = (
            self.db.update(Post)
            .where(Post.id == post_id)
            .where(
                self.db.or_(
                    Post.status.in_(("pending", "failed")),
                    self.db.and_(
                        Post.status == "processing", Post.updated_at < cutoff
                    ),
                )
            )
            .values(status="processing", updated_at=now, **RUN_OUTPUT_FIELDS)
            .execution_options(synchronize_session=False)
        )
        result = self.db.session.execute(stmt)
        self.db.session.commit()
        # Drop any cached copy so the next get() sees the claimed row.
        self.db.session.expire_all()
        return result.rowcount == 1

    def release(self, post_id):
        """Hand a post held by a dead run back to ``pending``.

        Rolls back the session first, since the run may have died on a
        database error. Checkpoints already written are left in place; the
        next claim clears them. Returns False when the post was not
        ``processing``.
        """
        self.db.session.rollback()
        stmt = (
            self.db.update(Post)
            .where(Post.id == post_id, Post.status == "processing")
            .values(status="pending", updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = self.db.session.execute(stmt)
        self.db.session.commit()
        self.db.session.expire_all()
        return result.rowcount == 1

    def count_by_status(self):
        rows = (
            self.db.session.query(Post.status, self.db.func.count(Post.id))
            .group_by(Post.status)
            .all()
        )
        counts = {status: 0 for status in Post.STATUSES}
        counts.update(dict(rows))
        return counts


def _check_status(status):
    if status not in Post.STATUSES:
        raise ValueError(
            f"Invalid status {status!r}; expected one of {', '.join(Post.STATUSES)}"
        )
