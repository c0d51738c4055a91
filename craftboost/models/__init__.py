from craftboost.models.post import Post  # noqa: F401
