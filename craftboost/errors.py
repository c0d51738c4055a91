"""Exception classes shared by the store, the pipeline and the API."""


class CraftBoostError(Exception):
    """Base exception. Rendered to clients via ``to_dict()``."""

    code = "UNKNOWN_ERROR"
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class PostNotFound(CraftBoostError):
    code = "POST_NOT_FOUND"
    status_code = 404

    def __init__(self, post_id):
        super().__init__(f"Post {post_id} not found", {"postId": post_id})
        self.post_id = post_id


class InvalidRequest(CraftBoostError):
    code = "INVALID_REQUEST"
    status_code = 400


class PipelineBusy(CraftBoostError):
    """Another pipeline run holds the post."""

    code = "PIPELINE_BUSY"
    status_code = 409

    def __init__(self, post_id):
        super().__init__(
            f"Post {post_id} is already being processed", {"postId": post_id}
        )
        self.post_id = post_id


class ConfigurationError(CraftBoostError):
    """A required setting (API key, connection string) is missing."""

    code = "CONFIGURATION_ERROR"
    status_code = 500

    def __init__(self, missing):
        if isinstance(missing, str):
            missing = [missing]
        names = ", ".join(missing)
        super().__init__(
            f"Missing required setting(s): {names}. "
            f"Set them in the environment or in .env.",
            {"missing": list(missing)},
        )
        self.missing = list(missing)


class CapabilityError(CraftBoostError):
    """An external AI capability returned an error or could not be reached."""

    code = "CAPABILITY_ERROR"
    status_code = 502

    def __init__(self, message, provider=None, status=None):
        details = {}
        if provider:
            details["provider"] = provider
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.provider = provider
        self.status = status


class MalformedUpstreamData(CraftBoostError):
    """Copy generation returned text that is not the expected JSON object.

    Never leaves the copy service: it is replaced by default copy.
    """

    code = "MALFORMED_UPSTREAM_DATA"
    status_code = 502
