from .models import MirrorEntry
from .records import (
    Alumnus,
    COLLECTION_KINDS,
    CollectionKey,
    Coach,
    ContentRecord,
    Event,
    EventStatus,
    EventType,
    LIST_COLLECTIONS,
    NewsItem,
    PageContent,
    Player,
    RecordKind,
    SiteSettings,
    Team,
    coerce_collection_key,
    decode_collection,
    decode_record,
    encode_collection,
    encode_record,
)

__all__ = [
    'MirrorEntry',
    'Alumnus',
    'COLLECTION_KINDS',
    'CollectionKey',
    'Coach',
    'ContentRecord',
    'Event',
    'EventStatus',
    'EventType',
    'LIST_COLLECTIONS',
    'NewsItem',
    'PageContent',
    'Player',
    'RecordKind',
    'SiteSettings',
    'Team',
    'coerce_collection_key',
    'decode_collection',
    'decode_record',
    'encode_collection',
    'encode_record',
]
