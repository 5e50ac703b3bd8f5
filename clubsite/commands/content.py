"""Content cache CLI commands."""

import json
from pathlib import Path

import click
from flask import current_app
from flask.cli import with_appcontext

from clubsite.models.records import CollectionKey, coerce_collection_key, encode_collection
from clubsite.services.content_store import get_content_store
from clubsite.services.errors import ContentError, SaveFailed


@click.group('content')
def content_commands():
    """Content cache commands."""
    pass


@content_commands.command('refresh')
@with_appcontext
def refresh_content():
    """Re-read every collection from the remote store (mirror as fallback)."""
    sources = get_content_store().refresh()
    for key in CollectionKey:
        source = sources.get(key, 'unchanged')
        color = 'green' if source == 'remote' else 'yellow'
        click.echo(click.style(f'{key.value}: {source}', fg=color))


@content_commands.command('save')
@click.option('--wait/--no-wait', default=False, help='Poll the remote store until it reflects the save')
@with_appcontext
def save_content(wait):
    """Write every collection to the remote store.

    Example:
        flask content save --wait
    """
    store = get_content_store()
    try:
        report = store.save()
    except SaveFailed as e:
        click.echo(click.style(f"Error: failed to save {', '.join(e.failed_keys)}", fg='red'))
        if e.completed_keys:
            click.echo(f"  Saved: {', '.join(e.completed_keys)}")
        raise SystemExit(1)

    click.echo(click.style(f'✓ Saved {len(report.writes)} collections', fg='green'))
    if wait:
        if store.await_consistency():
            click.echo('  Remote store is consistent')
        else:
            click.echo(click.style('  Remote store has not caught up yet', fg='yellow'))


@content_commands.command('show')
@click.argument('key', required=False)
@with_appcontext
def show_content(key):
    """Print a collection (or everything) as JSON."""
    store = get_content_store()
    if key is None:
        payload = store.snapshot()
    else:
        try:
            collection = coerce_collection_key(key)
        except KeyError:
            raise click.BadParameter(f'Unknown collection "{key}"', param_hint='KEY')
        payload = encode_collection(collection, store.get(collection))
    click.echo(json.dumps(payload, indent=2))


@content_commands.command('upload')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('path')
@click.option('--link', nargs=2, metavar='COLLECTION FIELD', help='Save the URL into a document field')
@with_appcontext
def upload_image(file, path, link):
    """Upload an image file to object storage.

    Example:
        flask content upload logo.png settings/hero --link siteSettings data.heroBackgroundImage
    """
    pipeline = current_app.extensions['upload_pipeline']
    try:
        with file.open('rb') as handle:
            if link:
                url = pipeline.upload_and_link(handle, path, link[0], link[1])
                get_content_store().apply_linked_field(link[0], link[1], url)
            else:
                url = pipeline.upload_binary(handle, path)
    except ContentError as e:
        click.echo(click.style(f'Error: {e}', fg='red'))
        raise SystemExit(1)
    click.echo(click.style('✓ Uploaded', fg='green'))
    click.echo(f'  URL: {url}')


@content_commands.command('clear-mirror')
@click.confirmation_option(prompt='Delete the local mirror of all collections?')
@with_appcontext
def clear_mirror():
    """Delete the local mirror."""
    removed = get_content_store().mirror.clear()
    click.echo(f'Removed {removed} mirrored collections')
