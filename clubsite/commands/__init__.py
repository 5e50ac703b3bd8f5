"""CLI commands for the club site."""

from .content import content_commands


def register_commands(app):
    """Register all CLI command groups with the Flask app."""
    app.cli.add_command(content_commands)
