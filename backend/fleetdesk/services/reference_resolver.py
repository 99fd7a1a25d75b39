"""Translate human-entered reference values into record ids.

Two strategies share one interface and are picked once per import run:

* NameResolver: snapshot each lookup table once, then match names in memory
  (case-insensitive, trimmed, exact).
* IdResolver: the file already carries ids; each distinct id is checked for
  existence against the store once.
"""
import enum
import logging
from typing import Iterable

from fleetdesk.schemas.imports import ReferenceEntry
from fleetdesk.services.import_errors import ReferenceResolutionError

logger = logging.getLogger(__name__)


class ReferenceCategory(str, enum.Enum):
    CLIENT = "client"
    BODY_TYPE = "body_type"
    VEHICLE_CATEGORY = "vehicle_category"
    VEHICLE_TYPE = "vehicle_type"
    INSURER = "insurer"
    STICKER_TYPE = "sticker_type"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class ImportMode(str, enum.Enum):
    NAMES = "names"
    IDS = "ids"


def _name_key(name: str) -> str:
    return name.strip().lower()


class ReferenceResolver:
    """Base strategy. Subclasses implement ``prepare``, ``resolve`` and ``default_for``."""

    def __init__(self, store):
        self.store = store
        self._exists_cache: dict[tuple[ReferenceCategory, str], bool] = {}

    async def prepare(self, categories: Iterable[ReferenceCategory]) -> None:
        return None

    async def resolve(self, category: ReferenceCategory, value: str, field: str) -> str:
        raise NotImplementedError

    async def default_for(self, category: ReferenceCategory) -> str | None:
        raise NotImplementedError

    async def ensure_exists(self, category: ReferenceCategory, entity_id: str, field: str) -> str:
        key = (category, entity_id)
        if key not in self._exists_cache:
            self._exists_cache[key] = await self.store.exists(category, entity_id)
        if not self._exists_cache[key]:
            raise ReferenceResolutionError(
                f"Invalid {category.label} ID '{entity_id}'", field=field, value=entity_id
            )
        return entity_id


class NameResolver(ReferenceResolver):
    def __init__(self, store, supplied: dict[ReferenceCategory, list[ReferenceEntry]] | None = None):
        super().__init__(store)
        self._supplied = supplied or {}
        self._entries: dict[ReferenceCategory, list[ReferenceEntry]] = {}
        self._by_name: dict[ReferenceCategory, dict[str, list[ReferenceEntry]]] = {}
        self._defaults: dict[ReferenceCategory, str | None] = {}

    async def prepare(self, categories: Iterable[ReferenceCategory]) -> None:
        for category in categories:
            if category in self._entries:
                continue
            if category in self._supplied:
                entries = list(self._supplied[category])
                logger.debug("Using %d caller-supplied %s entries", len(entries), category.value)
            else:
                entries = await self.store.reference_entries(category)
            index: dict[str, list[ReferenceEntry]] = {}
            for entry in entries:
                index.setdefault(_name_key(entry.name), []).append(entry)
            self._entries[category] = entries
            self._by_name[category] = index

    async def resolve(self, category: ReferenceCategory, value: str, field: str) -> str:
        if category not in self._by_name:
            await self.prepare([category])
        matches = self._by_name[category].get(_name_key(value), [])
        if not matches:
            raise ReferenceResolutionError(
                f"Unknown {category.label} '{value}'", field=field, value=value
            )
        if len(matches) > 1:
            raise ReferenceResolutionError(
                f"{category.label.capitalize()} '{value}' matches {len(matches)} records; use the ID import instead",
                field=field,
                value=value,
            )
        return matches[0].id

    async def default_for(self, category: ReferenceCategory) -> str | None:
        if category in self._defaults:
            return self._defaults[category]
        if category not in self._entries:
            await self.prepare([category])
        default = next((entry.id for entry in self._entries[category] if entry.is_default), None)
        if default is None and category in self._supplied:
            # Supplied lists may omit the default flag.
            entry = await self.store.default_entry(category)
            default = entry.id if entry else None
        self._defaults[category] = default
        return default


class IdResolver(ReferenceResolver):
    def __init__(self, store):
        super().__init__(store)
        self._defaults: dict[ReferenceCategory, str | None] = {}

    async def resolve(self, category: ReferenceCategory, value: str, field: str) -> str:
        return await self.ensure_exists(category, value, field)

    async def default_for(self, category: ReferenceCategory) -> str | None:
        if category not in self._defaults:
            entry = await self.store.default_entry(category)
            self._defaults[category] = entry.id if entry else None
        return self._defaults[category]


def build_resolver(
    mode: ImportMode,
    store,
    supplied: dict[ReferenceCategory, list[ReferenceEntry]] | None = None,
) -> ReferenceResolver:
    if mode == ImportMode.IDS:
        return IdResolver(store)
    return NameResolver(store, supplied)
