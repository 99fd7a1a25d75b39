"""Bulk import pipeline: decoded rows in, per-row result ledger out.

Phases, in order:

1. Cap the row count and reject the run if any required column is missing.
2. Validate and coerce each row, check its natural key against the keys
   already persisted (fetched once), and resolve its references.
3. Write the surviving rows in fixed-width concurrent waves.

Only decode failures and missing columns abort a run. Everything else is
recorded against the row and the run carries on.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from fleetdesk.core.config import settings
from fleetdesk.schemas.imports import ImportSummary, RowResult
from fleetdesk.services.batch_writer import write_in_batches
from fleetdesk.services.import_errors import (
    DecodeError,
    DuplicateKeyError,
    PersistenceError,
    RowError,
    RowValidationError,
)
from fleetdesk.services.import_profiles import DATE, FLOAT, INT, TEXT, YEAR, FieldSpec, ImportProfile
from fleetdesk.services.import_validation import (
    apply_aliases,
    check_columns,
    is_blank,
    optional_text,
    parse_float,
    parse_int,
    parse_sheet_date,
    parse_year,
    require_text,
)
from fleetdesk.services.reference_resolver import ImportMode, ReferenceResolver

logger = logging.getLogger(__name__)

# Fallback numbering for rows that carry no file line: header is line 1, data row 0 is line 2.
HEADER_OFFSET = 2

_NUMERIC_KINDS = (YEAR, INT, FLOAT)


@dataclass
class PreparedRow:
    index: int
    key: str
    values: dict[str, Any]


def _display(value: Any) -> str | None:
    return None if value is None else str(value)


class ImportPipeline:
    def __init__(
        self,
        profile: ImportProfile,
        store,
        resolver: ReferenceResolver,
        mode: ImportMode,
        actor_id: uuid.UUID,
        default_owner_id: str | None = None,
        batch_width: int | None = None,
        max_rows: int | None = None,
    ):
        if actor_id is None:
            raise ValueError("Imports must be attributed to an acting user.")
        self.profile = profile
        self.store = store
        self.resolver = resolver
        self.mode = mode
        self.actor_id = actor_id
        self.default_owner_id = default_owner_id
        self.batch_width = batch_width or settings.IMPORT_BATCH_WIDTH
        self.max_rows = max_rows or settings.IMPORT_MAX_ROWS
        self._row_numbers: list[int] = []

    # ─── Run ───

    async def run(self, rows: list[dict[str, Any]]) -> ImportSummary:
        if not rows:
            raise DecodeError("File contains no data rows.")

        truncated = len(rows) > self.max_rows
        if truncated:
            logger.warning(
                "%s import: %d rows supplied, only the first %d are processed",
                self.profile.entity, len(rows), self.max_rows,
            )
            rows = rows[:self.max_rows]

        self._row_numbers = [
            getattr(row, "line", None) or index + HEADER_OFFSET for index, row in enumerate(rows)
        ]
        rows = [apply_aliases(dict(row), self.profile.aliases) for row in rows]
        owner_supplied = bool(self.default_owner_id)
        check_columns(rows[0].keys(), self.profile.required_columns(self.mode, owner_supplied))

        logger.info(
            "%s import started: %d rows, mode=%s, actor=%s",
            self.profile.entity, len(rows), self.mode.value, self.actor_id,
        )

        existing = await self.store.existing_keys(self.profile)
        await self.resolver.prepare(self.profile.categories(owner_supplied))

        results: list[RowResult | None] = [None] * len(rows)
        prepared: list[PreparedRow] = []
        seen: dict[str, int] = {}

        for index, row in enumerate(rows):
            try:
                item = await self._prepare_row(index, row, existing, seen)
            except RowError as exc:
                results[index] = self._failure(index, exc, self._peek_key(row))
                continue
            seen[item.key] = self._row_number(index)
            prepared.append(item)

        written = await write_in_batches(prepared, self.batch_width, self._write, self._write_crashed)
        for item, result in zip(prepared, written):
            results[item.index] = result

        succeeded = sum(1 for r in results if r.status == "success")
        summary = ImportSummary(
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            truncated=truncated,
            results=results,
        )
        logger.info(
            "%s import finished: total=%d succeeded=%d failed=%d",
            self.profile.entity, summary.total, summary.succeeded, summary.failed,
        )
        await self.store.record_audit(
            action=f"{self.profile.entity}.imported",
            entity_type=self.profile.entity,
            actor_id=self.actor_id,
            after={
                "mode": self.mode.value,
                "total": summary.total,
                "succeeded": summary.succeeded,
                "failed": summary.failed,
                "truncated": summary.truncated,
            },
        )
        return summary

    # ─── Row preparation ───

    async def _prepare_row(
        self,
        index: int,
        row: dict[str, Any],
        existing: set[str],
        seen: dict[str, int],
    ) -> PreparedRow:
        profile = self.profile

        # 1. presence
        key = profile.normalize_key(require_text(row, profile.key.column))
        for spec in profile.fields:
            if spec.required and is_blank(row.get(spec.column)):
                raise RowValidationError(
                    f"Missing required field '{spec.column}'", field=spec.column, value=row.get(spec.column)
                )
        for ref in profile.references:
            if ref.defaultable or (ref.owner and self.default_owner_id):
                continue
            require_text(row, ref.column_for(self.mode))

        values: dict[str, Any] = {profile.key.attr: key}

        # 2. numbers, 3. dates, then free text
        for spec in sorted(profile.fields, key=self._coercion_order):
            values[spec.attr] = self._coerce(row, spec)

        # 4. uniqueness
        if key in existing:
            raise DuplicateKeyError(
                f"{profile.key_label} '{key}' already exists", field=profile.key.column, value=key
            )
        if key in seen:
            raise DuplicateKeyError(
                f"{profile.key_label} '{key}' is repeated in this file (first seen on row {seen[key]})",
                field=profile.key.column,
                value=key,
            )

        # 5. references
        for ref in profile.references:
            values[ref.target] = await self._resolve_reference(row, ref)

        values.update(profile.defaults)
        return PreparedRow(index=index, key=key, values=values)

    @staticmethod
    def _coercion_order(spec: FieldSpec) -> int:
        if spec.kind in _NUMERIC_KINDS:
            return 0
        if spec.kind == DATE:
            return 1
        return 2

    @staticmethod
    def _coerce(row: dict[str, Any], spec: FieldSpec) -> Any:
        raw = row.get(spec.column)
        if is_blank(raw):
            return None
        if spec.kind == YEAR:
            return parse_year(raw, spec.column)
        if spec.kind == INT:
            return parse_int(raw, spec.column)
        if spec.kind == FLOAT:
            return parse_float(raw, spec.column, maximum=spec.maximum)
        if spec.kind == DATE:
            return parse_sheet_date(raw, spec.column)
        if spec.kind == TEXT:
            return optional_text(row, spec.column)
        raise ValueError(f"Unknown field kind '{spec.kind}'")

    async def _resolve_reference(self, row: dict[str, Any], ref) -> str:
        if ref.owner and self.default_owner_id:
            return await self.resolver.ensure_exists(ref.category, self.default_owner_id, ref.id_column)

        column = ref.column_for(self.mode)
        raw = optional_text(row, column)
        if raw is None:
            default = await self.resolver.default_for(ref.category) if ref.defaultable else None
            if default is None:
                raise RowValidationError(f"Missing required field '{column}'", field=column)
            return default
        return await self.resolver.resolve(ref.category, raw, column)

    def _peek_key(self, row: dict[str, Any]) -> str | None:
        raw = optional_text(row, self.profile.key.column)
        return self.profile.normalize_key(raw) if raw else None

    # ─── Writing ───

    async def _write(self, item: PreparedRow) -> RowResult:
        try:
            record_id = await self.store.insert(self.profile, item.values, self.actor_id)
        except RowError as exc:
            logger.info("%s row %d not written: %s", self.profile.entity, self._row_number(item.index), exc.message)
            return self._failure(item.index, exc, item.key)
        return RowResult(
            row_index=item.index,
            row_number=self._row_number(item.index),
            status="success",
            identifier=str(record_id),
            key=item.key,
        )

    def _write_crashed(self, item: PreparedRow, exc: Exception) -> RowResult:
        logger.error(
            "%s row %d write failed unexpectedly: %s",
            self.profile.entity, self._row_number(item.index), exc, exc_info=exc,
        )
        return self._failure(item.index, PersistenceError(f"Could not save record: {exc}"), item.key)

    def _row_number(self, index: int) -> int:
        return self._row_numbers[index]

    def _failure(self, index: int, exc: RowError, key: str | None) -> RowResult:
        row_number = self._row_number(index)
        return RowResult(
            row_index=index,
            row_number=row_number,
            status="error",
            key=key,
            field=exc.field,
            value=_display(exc.value),
            message=f"Row {row_number}: {exc.message}",
            error_type=exc.error_type,
        )
