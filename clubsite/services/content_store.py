"""Content cache and reconciler.

``ContentStore`` owns every content collection for the lifetime of the
application. It loads from the remote document store with the local mirror
and example content as fallbacks, and on save re-reads the remote copy before
writing so that stale local state does not clobber remote data.

There is no locking: two saves running at once can interleave their
read-then-write steps and the last writer wins per document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from flask import current_app
from pydantic import ValidationError

from clubsite.models.records import (
    COLLECTION_KINDS,
    LIST_COLLECTIONS,
    RECORD_TYPES,
    CollectionKey,
    Coach,
    ContentRecord,
    PageContent,
    Player,
    RecordId,
    RecordKind,
    SiteSettings,
    coerce_collection_key,
    decode_collection,
    decode_record,
    encode_collection,
    encode_record,
)
from clubsite.services.errors import RemoteUnavailable, SaveFailed
from clubsite.services.mirror import LocalMirror
from clubsite.services.remote_store import DATA_FIELD, DocumentStore, WriteResult
from clubsite.services.sanitize import sanitize, sanitize_record
from clubsite.services.seed import example_payload

KIND_COLLECTIONS: Dict[RecordKind, CollectionKey] = {kind: key for key, kind in COLLECTION_KINDS.items()}


@dataclass
class SaveReport:
    """Acknowledged writes of one ``save()`` call."""

    writes: List[WriteResult] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return [write.key for write in self.writes]


def _id_key(record_id: RecordId) -> str:
    return str(record_id)


def _is_empty(payload: Any) -> bool:
    return payload is None or payload == [] or payload == {}


def next_id(records: List[ContentRecord]) -> int:
    """Max existing integer id plus one, or 1 for an empty collection."""
    ids = []
    for record in records:
        try:
            ids.append(int(record.id))
        except (TypeError, ValueError):
            continue
    return max(ids) + 1 if ids else 1


class ContentStore:
    """In-memory content collections reconciled with the remote store."""

    def __init__(self, remote: DocumentStore, mirror: LocalMirror, seed_examples: bool = True):
        self.remote = remote
        self.mirror = mirror
        self.seed_examples = seed_examples
        self._lists: Dict[CollectionKey, Dict[str, ContentRecord]] = {key: {} for key in LIST_COLLECTIONS}
        self.page_content = PageContent()
        self.site_settings = SiteSettings()
        self.sources: Dict[CollectionKey, str] = {}
        self._last_written: Dict[str, Dict[str, Any]] = {}
        # Keys whose remote document exists but could not be read at load time
        self.held: set[CollectionKey] = set()

    # -- state -----------------------------------------------------------------

    def get(self, key: CollectionKey) -> Any:
        """Return a list of records, or the singleton record for singletons."""
        if key is CollectionKey.PAGE_CONTENT:
            return self.page_content
        if key is CollectionKey.SITE_SETTINGS:
            return self.site_settings
        return list(self._lists[key].values())

    def _assign(self, key: CollectionKey, value: Any) -> None:
        if key is CollectionKey.PAGE_CONTENT:
            self.page_content = value
        elif key is CollectionKey.SITE_SETTINGS:
            self.site_settings = value
        else:
            self._lists[key] = {_id_key(record.id): record for record in value}

    def _decode(self, key: CollectionKey, payload: Any, source: str) -> Any:
        """Decode a payload, returning None when nothing usable is in it.

        List collections are decoded record by record; a malformed record is
        logged and skipped. A non-empty list with no valid record at all, a
        list collection that is not a list, or an invalid singleton gives None.
        """
        if key.is_singleton:
            try:
                return decode_collection(key, payload)
            except ValidationError as e:
                current_app.logger.error(f"Discarding malformed {key.value} from {source}: {e}")
                return None

        if not isinstance(payload, list):
            current_app.logger.error(
                f"Discarding {key.value} from {source}: expected a list, got {type(payload).__name__}"
            )
            return None

        records = []
        for index, item in enumerate(payload):
            try:
                records.append(decode_record(key.kind, item))
            except ValidationError as e:
                current_app.logger.warning(f"Skipping malformed {key.value}[{index}] from {source}: {e}")
        if payload and not records:
            current_app.logger.error(f"Discarding {key.value} from {source}: no valid records")
            return None
        return records

    def _is_blank(self, key: CollectionKey) -> bool:
        value = self.get(key)
        if key.is_singleton:
            return value == RECORD_TYPES[key.kind]()
        return not value

    def snapshot(self) -> Dict[str, Any]:
        """Full-fidelity JSON form of every collection."""
        return {key.value: encode_collection(key, self.get(key)) for key in CollectionKey}

    # -- loading -----------------------------------------------------------------

    def _read_remote(self, key: CollectionKey) -> Dict[str, Any] | None:
        try:
            return self.remote.get_document(key.value)
        except RemoteUnavailable as e:
            current_app.logger.warning(f"Remote read of {key.value} failed, using local mirror: {e}")
            return None

    def _load_candidates(self, key: CollectionKey) -> Iterator[Tuple[str, Any]]:
        document = self._read_remote(key)
        yield 'remote', document.get(DATA_FIELD) if document else None
        yield 'mirror', self.mirror.get(key.value)
        if self.seed_examples:
            yield 'seed', example_payload(key)

    def load(self) -> Dict[CollectionKey, str]:
        """Initial population: remote, then local mirror, then example content.

        A source that fails, is missing or is empty is skipped. When the remote
        document exists but cannot be decoded, example content is never used
        for that key: without a mirrored copy the key starts empty and is held,
        so ``save()`` leaves the remote document alone. Returns the source each
        collection was taken from.
        """
        self.held.clear()
        for key in CollectionKey:
            value = None
            source = 'empty'
            remote_unreadable = False
            for name, payload in self._load_candidates(key):
                if _is_empty(payload):
                    continue
                if name == 'seed' and remote_unreadable:
                    break
                value = self._decode(key, payload, name)
                if value is not None:
                    source = name
                    break
                if name == 'remote':
                    remote_unreadable = True

            if value is None:
                value = decode_collection(key, None)
                if remote_unreadable:
                    source = 'held'
                    self.held.add(key)
                    current_app.logger.warning(
                        f"Remote {key.value} could not be read; it will not be overwritten until it is fixed"
                    )
            self._assign(key, value)
            self.sources[key] = source
            current_app.logger.debug(f"Loaded {key.value} from {source}")
        return dict(self.sources)

    def refresh(self) -> Dict[CollectionKey, str]:
        """Re-pull every collection; the remote copy wins unconditionally.

        A collection the remote cannot supply falls back to the local mirror;
        when neither has it the in-memory value is left unchanged.
        """
        for key in CollectionKey:
            document = self._read_remote(key)
            if document is not None and DATA_FIELD in document:
                source, payload = 'remote', document[DATA_FIELD]
            else:
                source, payload = 'mirror', self.mirror.get(key.value)
                if payload is None:
                    continue
            value = self._decode(key, payload, source)
            if value is None:
                continue
            self._assign(key, value)
            self.sources[key] = source
            if source == 'remote':
                self.held.discard(key)
        return dict(self.sources)

    # -- saving ------------------------------------------------------------------

    def _protect_coaches(self, remote_payload: Any) -> None:
        """Keep the remote coaches when the in-memory list is empty."""
        if self.page_content.coaches or not isinstance(remote_payload, dict):
            return
        if not remote_payload.get('coaches'):
            return
        remote_page = self._decode(CollectionKey.PAGE_CONTENT, remote_payload, 'remote')
        if remote_page is None or not remote_page.coaches:
            return
        current_app.logger.warning(
            f"Local coaches list is empty; keeping {len(remote_page.coaches)} coaches from the remote store"
        )
        self.page_content = self.page_content.model_copy(update={'coaches': remote_page.coaches})

    def _sanitized_payload(self, key: CollectionKey) -> Any:
        value = self.get(key)
        if key.is_singleton:
            return encode_record(sanitize_record(value))
        return [encode_record(record) for record in sanitize(value)]

    def save(self) -> SaveReport:
        """Persist every collection.

        Each collection is re-read, reconciled, sanitized and written. The
        unsanitized state is then mirrored locally. A held collection is
        skipped until it has content of its own.

        Raises:
            SaveFailed: at least one write failed; completed writes stay in place
        """
        report = SaveReport()
        failed: List[str] = []

        for key in CollectionKey:
            if key in self.held:
                if self._is_blank(key):
                    current_app.logger.warning(
                        f"Not saving {key.value}: the remote copy is unreadable and nothing replaced it"
                    )
                    continue
                self.held.discard(key)

            document = self._read_remote(key)
            if key is CollectionKey.PAGE_CONTENT:
                self._protect_coaches(document.get(DATA_FIELD) if document else None)

            payload = self._sanitized_payload(key)
            try:
                report.writes.append(self.remote.set_data(key.value, payload))
            except RemoteUnavailable as e:
                current_app.logger.error(f"Failed to save {key.value}: {e}")
                failed.append(key.value)
                continue
            self._last_written[key.value] = {DATA_FIELD: payload}

        mirrored = self.snapshot()
        for key in self.held:
            mirrored.pop(key.value, None)
        self.mirror.set_many(mirrored)

        if failed:
            raise SaveFailed(failed, report.keys)
        current_app.logger.info(f"Saved {len(report.writes)} collections to {self.remote.namespace}")
        return report

    def await_consistency(self, attempts: int = 5, delay: float = 0.5) -> bool:
        """Wait until the remote store reflects the last save."""
        return all(
            self.remote.await_consistency(key, payload, attempts=attempts, delay=delay)
            for key, payload in self._last_written.items()
        )

    # -- editing -----------------------------------------------------------------

    def records(self, key: CollectionKey) -> List[ContentRecord]:
        if key.is_singleton:
            raise ValueError(f"{key.value} is not a list collection")
        return list(self._lists[key].values())

    def get_record(self, key: CollectionKey, record_id: RecordId) -> Optional[ContentRecord]:
        return self._lists[key].get(_id_key(record_id))

    def next_id(self, key: CollectionKey) -> int:
        return next_id(self.records(key))

    def create_record(self, key: CollectionKey, **fields: Any) -> ContentRecord:
        """Create a record with the next free id and add it to ``key``."""
        fields.pop('id', None)
        record = decode_collection(key, [{**fields, 'id': self.next_id(key)}])[0]
        self._lists[key][_id_key(record.id)] = record
        return record

    def upsert_record(self, record: ContentRecord) -> ContentRecord:
        """Whole-record replace keyed by id (insert when the id is new)."""
        key = KIND_COLLECTIONS.get(record.kind)
        if key is None or key.is_singleton:
            raise ValueError(f"{record.kind.value} records are not stored in a list collection")
        self._lists[key][_id_key(record.id)] = record
        return record

    def delete_record(self, key: CollectionKey, record_id: RecordId) -> bool:
        if key is CollectionKey.TEAMS:
            return self.delete_team(record_id) is not None
        return self._lists[key].pop(_id_key(record_id), None) is not None

    def delete_team(self, team_id: RecordId) -> Optional[List[Player]]:
        """Delete a team and unassign its players.

        Returns the players that were unassigned, or None if no such team.
        """
        team = self._lists[CollectionKey.TEAMS].pop(_id_key(team_id), None)
        if team is None:
            return None

        players = self._lists[CollectionKey.PLAYERS]
        unassigned = []
        for player_key, player in list(players.items()):
            if player.team == team.name:
                players[player_key] = player.model_copy(update={'team': ''})
                unassigned.append(players[player_key])
        if unassigned:
            current_app.logger.info(f"Unassigned {len(unassigned)} players from deleted team {team.name}")
        return unassigned

    # -- page content and settings -------------------------------------------------

    def next_coach_id(self) -> int:
        return next_id(self.page_content.coaches)

    def upsert_coach(self, coach: Coach) -> Coach:
        """Replace the coach with the same id in place, or append it."""
        coaches = list(self.page_content.coaches)
        for index, existing in enumerate(coaches):
            if _id_key(existing.id) == _id_key(coach.id):
                coaches[index] = coach
                break
        else:
            coaches.append(coach)
        self.page_content = self.page_content.model_copy(update={'coaches': coaches})
        return coach

    def delete_coach(self, coach_id: RecordId) -> bool:
        coaches = [c for c in self.page_content.coaches if _id_key(c.id) != _id_key(coach_id)]
        removed = len(coaches) != len(self.page_content.coaches)
        self.page_content = self.page_content.model_copy(update={'coaches': coaches})
        return removed

    def set_about_image(self, url: str) -> None:
        self.page_content = self.page_content.model_copy(update={'about_image': url or ''})

    def update_singleton(self, key: CollectionKey, changes: Dict[str, Any]) -> ContentRecord:
        """Apply wire-format ``changes`` to a singleton and validate the result."""
        if not key.is_singleton:
            raise ValueError(f"{key.value} is not a singleton")
        fields = RECORD_TYPES[key.kind].model_fields
        wire_changes = {
            (fields[name].alias or name) if name in fields else name: value
            for name, value in changes.items()
        }
        merged = {**encode_record(self.get(key)), **wire_changes}
        value = decode_collection(key, merged)
        self._assign(key, value)
        return value

    def update_site_settings(self, **changes: Any) -> SiteSettings:
        return self.update_singleton(CollectionKey.SITE_SETTINGS, changes)

    def apply_linked_field(self, collection_key: str | CollectionKey, field_path: str, value: Any) -> bool:
        """Mirror a merge-set made directly on the remote document.

        ``field_path`` is relative to the document (``data.heroBackgroundImage``).
        Returns False when the document is not a content singleton, in which
        case nothing in memory changes.
        """
        try:
            key = coerce_collection_key(collection_key)
        except KeyError:
            return False
        parts = [part for part in field_path.split('.') if part]
        if not key.is_singleton or len(parts) < 2 or parts[0] != DATA_FIELD:
            return False

        payload = encode_record(self.get(key))
        target = payload
        for part in parts[1:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = value
        self._assign(key, decode_collection(key, payload))
        self.held.discard(key)
        return True


def get_content_store() -> ContentStore:
    """Return the application's content store."""
    return current_app.extensions['content_store']


__all__ = ['ContentStore', 'SaveReport', 'get_content_store', 'next_id', 'KIND_COLLECTIONS']
