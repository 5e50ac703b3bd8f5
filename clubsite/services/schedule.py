"""Read-side helpers used by the public pages."""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from clubsite.models.records import Event, EventStatus, EventType, NewsItem, Player


def parse_date(value: str | None) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value[:10]).date()
    except ValueError:
        return None


def filter_events(
    events: Iterable[Event],
    event_type: EventType | str | None = None,
    status: EventStatus | str | None = None,
) -> List[Event]:
    """Filter by discriminator and status; ``None`` or ``'all'`` matches everything."""
    result = list(events)
    if event_type and event_type != 'all':
        result = [e for e in result if e.event_type == EventType(event_type)]
    if status and status != 'all':
        result = [e for e in result if e.status == EventStatus(status)]
    return result


def upcoming_events(events: Iterable[Event], limit: int | None = 3) -> List[Event]:
    """Upcoming events, soonest first."""
    upcoming = [e for e in filter_events(events, EventType.EVENT, EventStatus.UPCOMING)]
    upcoming.sort(key=lambda e: parse_date(e.date) or date.max)
    return upcoming[:limit] if limit else upcoming


def active_campaigns(events: Iterable[Event], today: date | None = None) -> List[Event]:
    """Campaigns without an end date or ending after today; dated ones first, soonest first."""
    today = today or date.today()
    campaigns = []
    for event in filter_events(events, EventType.CAMPAIGN):
        end = parse_date(event.end_date)
        if end is None or end > today:
            campaigns.append(event)
    campaigns.sort(key=lambda e: (parse_date(e.end_date) is None, parse_date(e.end_date) or date.max))
    return campaigns


def past_campaigns(events: Iterable[Event], today: date | None = None) -> List[Event]:
    """Campaigns that have ended, most recent first."""
    today = today or date.today()
    ended = [
        e for e in filter_events(events, EventType.CAMPAIGN)
        if parse_date(e.end_date) is not None and parse_date(e.end_date) <= today
    ]
    ended.sort(key=lambda e: parse_date(e.end_date), reverse=True)
    return ended


def players_by_team(players: Iterable[Player]) -> Dict[str, List[Player]]:
    """Group players by team name; unassigned players are keyed by ``''`` last."""
    grouped: Dict[str, List[Player]] = OrderedDict()
    unassigned: List[Player] = []
    for player in players:
        if player.team:
            grouped.setdefault(player.team, []).append(player)
        else:
            unassigned.append(player)
    if unassigned:
        grouped[''] = unassigned
    return grouped


def sorted_news(news: Iterable[NewsItem]) -> List[NewsItem]:
    """News items, newest first."""
    return sorted(news, key=lambda n: parse_date(n.date) or date.min, reverse=True)


__all__ = [
    'parse_date',
    'filter_events',
    'upcoming_events',
    'active_campaigns',
    'past_campaigns',
    'players_by_team',
    'sorted_news',
]
