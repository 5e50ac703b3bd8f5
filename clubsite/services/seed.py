"""Example content used on first run when no stored content exists."""

from __future__ import annotations

import copy
from typing import Any, Dict

from clubsite.models.records import CollectionKey

EXAMPLE_CONTENT: Dict[CollectionKey, Any] = {
    CollectionKey.PLAYERS: [
        {
            "id": 1,
            "name": "Alex Chen",
            "position": "Handler",
            "number": 7,
            "years": 4,
            "bio": "Team captain and primary handler. Known for precise throws and field vision.",
            "isCaptain": True,
            "image": None,
            "team": "A Team",
        },
        {
            "id": 2,
            "name": "Taylor Smith",
            "position": "Cutter",
            "number": 12,
            "years": 3,
            "bio": "Deep threat with exceptional speed and jumping ability.",
            "isCaptain": False,
            "image": None,
            "team": "A Team",
        },
        {
            "id": 3,
            "name": "Jordan Garcia",
            "position": "Handler",
            "number": 21,
            "years": 5,
            "bio": "Veteran handler with leadership experience and consistent throws.",
            "isCaptain": True,
            "image": None,
            "team": "B Team",
        },
    ],
    CollectionKey.ALUMNI: [
        {
            "id": 1,
            "name": "Jamie Williams",
            "years": "2018-2023",
            "achievements": "Team MVP (2020, 2022), All-Region (2021-2023)",
            "current": "Playing professionally for the Seattle Cascades",
        },
        {
            "id": 2,
            "name": "Drew Martinez",
            "years": "2018-2022",
            "achievements": "Team Captain (2020-2022), Defensive Player of the Year (2021)",
            "current": "Assistant coach for local college team",
        },
    ],
    CollectionKey.EVENTS: [
        {
            "id": 1,
            "title": "Spring Tournament",
            "date": "2025-04-15",
            "location": "Central Park Fields",
            "description": "Season opener tournament with 8 regional teams competing.",
            "type": "upcoming",
            "eventType": "event",
        },
        {
            "id": 2,
            "title": "Winter Invitational",
            "date": "2024-12-10",
            "location": "Indoor Sports Complex",
            "description": "Annual indoor tournament with top regional competition.",
            "type": "past",
            "eventType": "event",
            "result": "3rd Place",
        },
    ],
    CollectionKey.NEWS: [
        {
            "id": 1,
            "title": "Team Announcement for Spring Season",
            "date": "2025-02-01",
            "content": "We are excited to announce our roster for the upcoming spring season!",
            "author": "Coaching Staff",
        },
        {
            "id": 2,
            "title": "Fundraising Success",
            "date": "2025-01-15",
            "content": "Thanks to our supporters, we exceeded our fundraising goal for the season.",
            "author": "Fundraising Committee",
        },
    ],
    CollectionKey.TEAMS: [
        {
            "id": 1,
            "name": "A Team",
            "description": "Our elite competitive team that competes at the highest level.",
            "color": "#1e90ff",
        },
        {
            "id": 2,
            "name": "B Team",
            "description": "Our second competitive team focused on development and competition.",
            "color": "#ff4500",
        },
        {
            "id": 3,
            "name": "Development Team",
            "description": "For newer players looking to develop their skills and game knowledge.",
            "color": "#32cd32",
        },
    ],
    CollectionKey.PAGE_CONTENT: {
        "aboutImage": "",
        "coaches": [
            {
                "id": 1,
                "name": "Sarah Johnson",
                "role": "Head Coach",
                "bio": "Sarah has been coaching Ultimate for over 10 years and has led teams to national championships.",
                "image": None,
            },
            {
                "id": 2,
                "name": "Michael Rodriguez",
                "role": "Assistant Coach",
                "bio": "Former professional Ultimate player with 5 years of coaching experience.",
                "image": None,
            },
            {
                "id": 3,
                "name": "David Chen",
                "role": "Conditioning Coach",
                "bio": "Certified strength and conditioning specialist.",
                "image": None,
            },
        ],
    },
    CollectionKey.SITE_SETTINGS: {
        "heroTitle": "Sublime Ultimate",
        "heroSubtitle": "Excellence in Ultimate Frisbee",
        "heroCtaText": "Learn More About Us",
        "heroCtaLink": "/about",
        "heroBackgroundImage": "",
    },
}


def example_payload(key: CollectionKey) -> Any:
    return copy.deepcopy(EXAMPLE_CONTENT[key])


__all__ = ['EXAMPLE_CONTENT', 'example_payload']
