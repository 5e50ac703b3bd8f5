"""Admin dashboard: collection overview plus save and refresh actions."""

from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, url_for

from clubsite.auth import admin_required
from clubsite.models.records import CollectionKey, LIST_COLLECTIONS
from clubsite.services.content_store import get_content_store
from clubsite.services.errors import SaveFailed

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/')
@admin_required
def dashboard():
    store = get_content_store()
    counts = {key.value: len(store.records(key)) for key in LIST_COLLECTIONS}
    counts['coaches'] = len(store.page_content.coaches)
    return render_template(
        'admin/dashboard.html',
        counts=counts,
        sources={key.value: store.sources.get(key, 'empty') for key in CollectionKey},
        settings=store.site_settings,
    )


@admin_bp.route('/save', methods=['POST'])
@admin_required
def save():
    try:
        report = get_content_store().save()
    except SaveFailed as e:
        flash(f"There was an error saving {', '.join(e.failed_keys)}. Please try again.", 'error')
    else:
        flash(f"Saved {len(report.writes)} collections", 'success')
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/refresh', methods=['POST'])
@admin_required
def refresh():
    sources = get_content_store().refresh()
    from_mirror = [key.value for key, source in sources.items() if source == 'mirror']
    if from_mirror:
        flash(f"Remote store unavailable for {', '.join(from_mirror)}; showing the local copy", 'warning')
    else:
        flash('Content refreshed', 'success')
    return redirect(url_for('admin.dashboard'))
