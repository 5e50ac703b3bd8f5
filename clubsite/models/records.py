"""
Content record schemas.

Every record type is a pydantic model tagged with a ``RecordKind``. Wire keys
are camelCase because the same documents are read by the public site; unknown
keys are kept (``extra='allow'``) so a read-modify-write never drops a field
written by another client.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

RecordId = Union[int, str]


class RecordKind(Enum):
    PLAYER = "player"
    ALUMNUS = "alumnus"
    EVENT = "event"
    NEWS_ITEM = "news"
    TEAM = "team"
    COACH = "coach"
    PAGE_CONTENT = "page_content"
    SITE_SETTINGS = "site_settings"


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    CURRENT = "current"
    PAST = "past"


class EventType(str, Enum):
    EVENT = "event"
    CAMPAIGN = "campaign"


class ContentRecord(BaseModel):
    """Base for all content records."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    kind: ClassVar[RecordKind]


class Player(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.PLAYER

    id: RecordId
    name: str = ''
    position: str = ''
    number: int = 0
    years: int = 0
    bio: str = ''
    is_captain: bool = Field(False, alias='isCaptain')
    image: Optional[str] = None
    team: str = ''


class Alumnus(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.ALUMNUS

    id: RecordId
    name: str = ''
    years: str = ''
    achievements: str = ''
    current: str = ''


class Event(ContentRecord):
    """A scheduled event or a fundraising campaign (``event_type``)."""

    kind: ClassVar[RecordKind] = RecordKind.EVENT

    id: RecordId
    title: str = ''
    date: str = ''
    location: str = ''
    description: str = ''
    status: EventStatus = Field(EventStatus.UPCOMING, alias='type')
    event_type: EventType = Field(EventType.EVENT, alias='eventType')
    result: Optional[str] = None
    livestream_link: Optional[str] = Field(None, alias='livestreamLink')
    image: Optional[str] = None
    # campaigns only
    end_date: Optional[str] = Field(None, alias='endDate')
    roster: Optional[List[Player]] = None
    # past events only
    gallery: Optional[List[str]] = None

    @property
    def is_campaign(self) -> bool:
        return self.event_type == EventType.CAMPAIGN


class NewsItem(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.NEWS_ITEM

    id: RecordId
    title: str = ''
    date: str = ''
    content: str = ''
    author: str = ''
    image: Optional[str] = None


class Team(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.TEAM

    id: RecordId
    name: str = ''
    description: str = ''
    color: str = '#1e90ff'


class Coach(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.COACH

    id: RecordId
    name: str = ''
    role: str = ''
    bio: str = ''
    image: Optional[str] = None


class PageContent(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.PAGE_CONTENT

    about_image: str = Field('', alias='aboutImage')
    coaches: List[Coach] = Field(default_factory=list)


class SiteSettings(ContentRecord):
    kind: ClassVar[RecordKind] = RecordKind.SITE_SETTINGS

    hero_title: str = Field('', alias='heroTitle')
    hero_subtitle: str = Field('', alias='heroSubtitle')
    hero_cta_text: str = Field('', alias='heroCtaText')
    hero_cta_link: str = Field('', alias='heroCtaLink')
    hero_background_image: str = Field('', alias='heroBackgroundImage')


Record = Union[Player, Alumnus, Event, NewsItem, Team, Coach, PageContent, SiteSettings]

RECORD_TYPES: Dict[RecordKind, Type[ContentRecord]] = {
    RecordKind.PLAYER: Player,
    RecordKind.ALUMNUS: Alumnus,
    RecordKind.EVENT: Event,
    RecordKind.NEWS_ITEM: NewsItem,
    RecordKind.TEAM: Team,
    RecordKind.COACH: Coach,
    RecordKind.PAGE_CONTENT: PageContent,
    RecordKind.SITE_SETTINGS: SiteSettings,
}


class CollectionKey(str, Enum):
    """Document slots in the remote namespace, one per collection."""

    PLAYERS = "players"
    ALUMNI = "alumni"
    EVENTS = "events"
    NEWS = "news"
    TEAMS = "teams"
    PAGE_CONTENT = "pageContent"
    SITE_SETTINGS = "siteSettings"

    @property
    def kind(self) -> RecordKind:
        return COLLECTION_KINDS[self]

    @property
    def is_singleton(self) -> bool:
        return self in (CollectionKey.PAGE_CONTENT, CollectionKey.SITE_SETTINGS)


COLLECTION_KINDS: Dict[CollectionKey, RecordKind] = {
    CollectionKey.PLAYERS: RecordKind.PLAYER,
    CollectionKey.ALUMNI: RecordKind.ALUMNUS,
    CollectionKey.EVENTS: RecordKind.EVENT,
    CollectionKey.NEWS: RecordKind.NEWS_ITEM,
    CollectionKey.TEAMS: RecordKind.TEAM,
    CollectionKey.PAGE_CONTENT: RecordKind.PAGE_CONTENT,
    CollectionKey.SITE_SETTINGS: RecordKind.SITE_SETTINGS,
}

LIST_COLLECTIONS = tuple(key for key in CollectionKey if not key.is_singleton)


def decode_record(kind: RecordKind, data: Dict[str, Any]) -> ContentRecord:
    """Build the record class registered for ``kind`` from wire data."""
    return RECORD_TYPES[kind].model_validate(data)


def encode_record(record: ContentRecord) -> Dict[str, Any]:
    """Serialize a record to its JSON-ready wire form."""
    return record.model_dump(by_alias=True, mode='json')


def decode_collection(key: CollectionKey, payload: Any) -> Any:
    """Decode a document ``data`` payload for ``key``.

    List collections decode to a list of records, singletons to one record.
    """
    if key.is_singleton:
        return decode_record(key.kind, payload or {})
    return [decode_record(key.kind, item) for item in (payload or []) if isinstance(item, dict)]


def encode_collection(key: CollectionKey, value: Any) -> Any:
    if key.is_singleton:
        return encode_record(value)
    return [encode_record(record) for record in value]


def coerce_collection_key(value: str | CollectionKey) -> CollectionKey:
    """Resolve a collection key, raising ``KeyError`` for unknown names."""
    if isinstance(value, CollectionKey):
        return value
    for key in CollectionKey:
        if key.value == value:
            return key
    raise KeyError(value)


__all__ = [
    'RecordId',
    'RecordKind',
    'EventStatus',
    'EventType',
    'ContentRecord',
    'Player',
    'Alumnus',
    'Event',
    'NewsItem',
    'Team',
    'Coach',
    'PageContent',
    'SiteSettings',
    'Record',
    'RECORD_TYPES',
    'CollectionKey',
    'COLLECTION_KINDS',
    'LIST_COLLECTIONS',
    'decode_record',
    'encode_record',
    'decode_collection',
    'encode_collection',
    'coerce_collection_key',
]
