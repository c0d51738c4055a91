"""Flask CLI commands for admin operations."""
import click
from flask import current_app


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        from craftboost.extensions import db

        db.create_all()
        click.echo("Database initialized.")

    @app.cli.command("create-post")
    @click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
    def create_post(image_path):
        """Create a pending post from a local image file."""
        from craftboost.extensions import get_post_store
        from craftboost.services.image_service import validate_image

        with open(image_path, "rb") as fh:
            raw = fh.read()
        try:
            image_bytes = validate_image(raw)
        except ValueError as e:
            raise click.ClickException(str(e))

        post = get_post_store().create(original_image=image_bytes)
        click.echo(f"Created: {post.id}")

    @app.cli.command("process-post")
    @click.argument("post_id")
    def process_post(post_id):
        """Run the AI pipeline for a post in the foreground."""
        from craftboost.config import CAPABILITY_SETTINGS, require_settings
        from craftboost.errors import CraftBoostError
        from craftboost.extensions import get_post_store
        from craftboost.services.pipeline import build_pipeline

        try:
            require_settings(current_app.config, *CAPABILITY_SETTINGS)
            post = build_pipeline(current_app, get_post_store()).run(post_id)
        except CraftBoostError as e:
            raise click.ClickException(e.message)

        click.echo(f"{post.id}: {post.badge['label']}")
        if post.status == "failed":
            click.echo(f"  {post.error_message}")
        else:
            click.echo(f"  Title: {post.product_title}")
            click.echo(f"  Hashtags: {' '.join('#' + t for t in post.hashtags)}")

    @app.cli.command("list-posts")
    @click.option("--page", default=1, type=int)
    @click.option("--status", default=None, type=click.Choice(
        ["pending", "processing", "completed", "failed"]
    ))
    def list_posts(page, status):
        """List posts, newest first."""
        from craftboost.extensions import get_post_store

        result = get_post_store().list(
            page=page, page_size=current_app.config["POSTS_PAGE_SIZE"], status=status
        )
        for post in result["items"]:
            title = post.product_title or "—"
            click.echo(f"{post.id}  [{post.badge['label']}]  {title}")
        click.echo(
            f"Page {result['page']} of {result['totalPages']} ({result['total']} posts)"
        )

    @app.cli.command("stats")
    def stats():
        """Show post counts by status."""
        from craftboost.extensions import get_post_store
        from craftboost.models.post import Post

        counts = get_post_store().count_by_status()
        click.echo(f"Total posts: {sum(counts.values())}")
        for status in Post.STATUSES:
            click.echo(f"  {Post.STATUS_BADGES[status]['label']}: {counts[status]}")
