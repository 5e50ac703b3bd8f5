"""Public pages rendered from the content store."""

from __future__ import annotations

import mimetypes

from flask import Blueprint, abort, current_app, render_template, request, send_from_directory

from clubsite.models.records import CollectionKey
from clubsite.services.content_store import ContentStore, get_content_store
from clubsite.services.object_storage import LocalObjectStorage
from clubsite.services.schedule import (
    active_campaigns,
    filter_events,
    past_campaigns,
    players_by_team,
    sorted_news,
    upcoming_events,
)

public_bp = Blueprint('public', __name__)


def _content() -> ContentStore:
    """Content store, refreshed first when page views should see fresh data."""
    store = get_content_store()
    if current_app.config.get('REFRESH_ON_PAGE_VIEW'):
        store.refresh()
    return store


@public_bp.route('/')
def home():
    store = _content()
    return render_template(
        'public/home.html',
        settings=store.site_settings,
        upcoming=upcoming_events(store.records(CollectionKey.EVENTS)),
        latest_news=sorted_news(store.records(CollectionKey.NEWS))[:3],
    )


@public_bp.route('/roster')
def roster():
    store = _content()
    players = store.records(CollectionKey.PLAYERS)
    selected = request.args.get('filter', 'all')
    if selected == 'captains':
        players = [p for p in players if p.is_captain]
    elif selected != 'all':
        players = [p for p in players if p.team == selected]
    return render_template(
        'public/roster.html',
        grouped=players_by_team(players),
        teams=store.records(CollectionKey.TEAMS),
        alumni=store.records(CollectionKey.ALUMNI),
        selected=selected,
    )


@public_bp.route('/schedule')
def schedule():
    store = _content()
    events = store.records(CollectionKey.EVENTS)
    return render_template(
        'public/schedule.html',
        upcoming=upcoming_events(events, limit=None),
        current=filter_events(events, 'event', 'current'),
        past=filter_events(events, 'event', 'past'),
        active_campaigns=active_campaigns(events),
        past_campaigns=past_campaigns(events),
    )


@public_bp.route('/schedule/<event_id>')
def event_detail(event_id: str):
    # Look up without refreshing first so a freshly saved event is found
    event = get_content_store().get_record(CollectionKey.EVENTS, event_id)
    if event is None:
        abort(404)
    return render_template('public/event_detail.html', event=event)


@public_bp.route('/news')
def news():
    store = _content()
    return render_template('public/news.html', news=sorted_news(store.records(CollectionKey.NEWS)))


@public_bp.route('/about')
def about():
    store = _content()
    return render_template('public/about.html', page=store.page_content)


@public_bp.route('/uploads/<path:name>')
def uploaded_file(name: str):
    """Serve objects written by the local object storage backend."""
    storage = current_app.extensions['upload_pipeline'].storage
    if not isinstance(storage, LocalObjectStorage):
        abort(404)
    mimetype = mimetypes.guess_type(name)[0] or 'application/octet-stream'
    return send_from_directory(storage.root, name, mimetype=mimetype)
