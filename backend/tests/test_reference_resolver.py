"""Tests for name- and id-based reference resolution."""
from unittest.mock import AsyncMock

import pytest

from fleetdesk.schemas.imports import ReferenceEntry
from fleetdesk.services.import_errors import ReferenceResolutionError
from fleetdesk.services.reference_resolver import (
    IdResolver,
    ImportMode,
    NameResolver,
    ReferenceCategory,
    build_resolver,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

BODY_TYPES = [
    ReferenceEntry(id="bt-1", name="Sedan", is_default=True),
    ReferenceEntry(id="bt-2", name="SUV"),
]


def _store(entries=None, exists=True, default=None):
    store = AsyncMock()
    store.reference_entries = AsyncMock(return_value=entries if entries is not None else BODY_TYPES)
    store.exists = AsyncMock(return_value=exists)
    store.default_entry = AsyncMock(return_value=default)
    return store


# ─── NameResolver ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_name_match_is_case_insensitive_and_trimmed():
    resolver = NameResolver(_store())
    await resolver.prepare([ReferenceCategory.BODY_TYPE])
    assert await resolver.resolve(ReferenceCategory.BODY_TYPE, "  suv ", "body_type") == "bt-2"


@pytest.mark.asyncio
async def test_snapshot_is_loaded_once_per_category():
    store = _store()
    resolver = NameResolver(store)
    await resolver.prepare([ReferenceCategory.BODY_TYPE])
    for _ in range(5):
        await resolver.resolve(ReferenceCategory.BODY_TYPE, "Sedan", "body_type")
    store.reference_entries.assert_awaited_once_with(ReferenceCategory.BODY_TYPE)


@pytest.mark.asyncio
async def test_unknown_name_raises_unresolved_reference():
    resolver = NameResolver(_store())
    await resolver.prepare([ReferenceCategory.BODY_TYPE])
    with pytest.raises(ReferenceResolutionError, match="Unknown body type 'Hatchback'") as exc_info:
        await resolver.resolve(ReferenceCategory.BODY_TYPE, "Hatchback", "body_type")
    assert exc_info.value.error_type == "unresolved_reference"
    assert exc_info.value.field == "body_type"


@pytest.mark.asyncio
async def test_name_shared_by_two_entries_is_ambiguous():
    clients = [ReferenceEntry(id="c-1", name="John Doe"), ReferenceEntry(id="c-2", name="john doe")]
    resolver = NameResolver(_store(entries=clients))
    await resolver.prepare([ReferenceCategory.CLIENT])
    with pytest.raises(ReferenceResolutionError, match="matches 2 records"):
        await resolver.resolve(ReferenceCategory.CLIENT, "John Doe", "client")


@pytest.mark.asyncio
async def test_supplied_entries_take_precedence_over_store():
    store = _store()
    supplied = {ReferenceCategory.BODY_TYPE: [ReferenceEntry(id="x-9", name="Sedan")]}
    resolver = NameResolver(store, supplied)
    await resolver.prepare([ReferenceCategory.BODY_TYPE])
    assert await resolver.resolve(ReferenceCategory.BODY_TYPE, "sedan", "body_type") == "x-9"
    store.reference_entries.assert_not_awaited()


@pytest.mark.asyncio
async def test_name_default_is_entry_flagged_default():
    resolver = NameResolver(_store())
    assert await resolver.default_for(ReferenceCategory.BODY_TYPE) == "bt-1"


@pytest.mark.asyncio
async def test_name_default_none_when_no_entry_flagged():
    resolver = NameResolver(_store(entries=[ReferenceEntry(id="bt-2", name="SUV")]))
    assert await resolver.default_for(ReferenceCategory.BODY_TYPE) is None


@pytest.mark.asyncio
async def test_supplied_list_without_default_flag_falls_back_to_store_default():
    store = _store(default=ReferenceEntry(id="bt-1", name="Sedan", is_default=True))
    supplied = {
        ReferenceCategory.BODY_TYPE: [
            ReferenceEntry(id="bt-1", name="Sedan"),
            ReferenceEntry(id="bt-2", name="SUV"),
        ]
    }
    resolver = NameResolver(store, supplied)
    await resolver.prepare([ReferenceCategory.BODY_TYPE])
    assert await resolver.default_for(ReferenceCategory.BODY_TYPE) == "bt-1"
    assert await resolver.default_for(ReferenceCategory.BODY_TYPE) == "bt-1"
    store.default_entry.assert_awaited_once_with(ReferenceCategory.BODY_TYPE)
    store.reference_entries.assert_not_awaited()


@pytest.mark.asyncio
async def test_supplied_default_flag_wins_without_store_lookup():
    store = _store(default=ReferenceEntry(id="bt-1", name="Sedan", is_default=True))
    supplied = {ReferenceCategory.BODY_TYPE: [ReferenceEntry(id="x-2", name="SUV", is_default=True)]}
    resolver = NameResolver(store, supplied)
    assert await resolver.default_for(ReferenceCategory.BODY_TYPE) == "x-2"
    store.default_entry.assert_not_awaited()


# ─── IdResolver ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_id_existence_checked_once_per_distinct_id():
    store = _store(exists=True)
    resolver = IdResolver(store)
    for _ in range(3):
        assert await resolver.resolve(ReferenceCategory.INSURER, "ins-1", "insurer_id") == "ins-1"
    store.exists.assert_awaited_once_with(ReferenceCategory.INSURER, "ins-1")


@pytest.mark.asyncio
async def test_unknown_id_raises_invalid_id():
    resolver = IdResolver(_store(exists=False))
    with pytest.raises(ReferenceResolutionError, match="Invalid insurer ID 'nope'"):
        await resolver.resolve(ReferenceCategory.INSURER, "nope", "insurer_id")


@pytest.mark.asyncio
async def test_id_default_comes_from_store_and_is_cached():
    store = _store(default=ReferenceEntry(id="vt-1", name="Car", is_default=True))
    resolver = IdResolver(store)
    assert await resolver.default_for(ReferenceCategory.VEHICLE_TYPE) == "vt-1"
    assert await resolver.default_for(ReferenceCategory.VEHICLE_TYPE) == "vt-1"
    store.default_entry.assert_awaited_once()


# ─── Factory ──────────────────────────────────────────────────────────────────

def test_build_resolver_picks_strategy_by_mode():
    store = _store()
    assert isinstance(build_resolver(ImportMode.IDS, store), IdResolver)
    assert isinstance(build_resolver(ImportMode.NAMES, store), NameResolver)
