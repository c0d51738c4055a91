import uuid
from datetime import datetime, timezone

from craftboost.extensions import db
from craftboost.services.image_service import to_data_uri


def _new_id():
    return uuid.uuid4().hex


def _utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    """ISO-8601 in UTC with millisecond precision, e.g. 2025-01-31T09:15:00.000Z."""
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive datetimes; everything is stored as UTC.
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    original_image = db.Column(db.LargeBinary, nullable=False)
    original_mime = db.Column(db.String(50), nullable=False, default="image/jpeg")
    cutout_image = db.Column(db.LargeBinary)  # stage 1 checkpoint, not serialized
    processed_image = db.Column(db.LargeBinary)
    processed_mime = db.Column(db.String(50))
    product_title = db.Column(db.String(255))
    captions = db.Column(db.JSON, nullable=False, default=list)
    hashtags = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    error_message = db.Column(db.Text)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        db.Index("ix_posts_status_created_at", "status", "created_at"),
    )

    STATUSES = ("pending", "processing", "completed", "failed")
    TERMINAL_STATUSES = {"completed", "failed"}

    STATUS_BADGES = {
        "pending": {"icon": "clock", "label": "Pending"},
        "processing": {"icon": "loader", "label": "Processing"},
        "completed": {"icon": "check-circle", "label": "Completed"},
        "failed": {"icon": "alert-circle", "label": "Failed"},
    }

    @property
    def badge(self):
        return self.STATUS_BADGES[self.status]

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def to_dict(self):
        """Wire representation returned by the API."""
        processed = None
        if self.processed_image is not None:
            processed = to_data_uri(
                self.processed_image, self.processed_mime or "image/png"
            )
        return {
            "id": self.id,
            "originalImage": to_data_uri(self.original_image, self.original_mime),
            "processedImage": processed,
            "captions": list(self.captions or []),
            "hashtags": list(self.hashtags or []),
            "productTitle": self.product_title,
            "status": self.status,
            "errorMessage": self.error_message,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Post {self.id} [{self.status}]>"
