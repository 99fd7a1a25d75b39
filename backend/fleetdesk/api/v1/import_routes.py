"""Bulk import endpoints for vehicles and sticker stock, plus template downloads."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import Response
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetdesk.core.config import settings
from fleetdesk.core.deps import require_role
from fleetdesk.core.limiter import limiter
from fleetdesk.db.session import get_session_factory
from fleetdesk.models.user import IMPORT_ROLES
from fleetdesk.schemas.imports import BulkUploadResult, ImportSummary, ReferenceEntry
from fleetdesk.services.import_errors import (
    ImportRunError,
    MissingColumnsError,
    ReferencePayloadError,
)
from fleetdesk.services.import_pipeline import ImportPipeline
from fleetdesk.services.import_profiles import STICKER_STOCK_PROFILE, VEHICLE_PROFILE, ImportProfile
from fleetdesk.services.import_template import XLSX_MEDIA_TYPE, build_template
from fleetdesk.services.record_store import SqlRecordStore
from fleetdesk.services.reference_resolver import ImportMode, ReferenceCategory, build_resolver
from fleetdesk.services.tabular import decode_table, detect_format

logger = logging.getLogger(__name__)

router = APIRouter()

_entry_list = TypeAdapter(list[ReferenceEntry])


# ─── Dependencies ───

def get_record_store(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> SqlRecordStore:
    return SqlRecordStore(session_factory)


# ─── Helpers ───

def _parse_reference_list(raw: str | None, field: str) -> list[ReferenceEntry] | None:
    if not raw:
        return None
    try:
        return _entry_list.validate_json(raw)
    except ValidationError as exc:
        raise ReferencePayloadError(
            f"Form field '{field}' must be a JSON list of {{\"id\", \"name\"}} objects"
        ) from exc


def _supplied_references(**blobs: tuple[ReferenceCategory, str | None]) -> dict[ReferenceCategory, list[ReferenceEntry]]:
    supplied: dict[ReferenceCategory, list[ReferenceEntry]] = {}
    for field, (category, raw) in blobs.items():
        entries = _parse_reference_list(raw, field)
        if entries is not None:
            supplied[category] = entries
    return supplied


async def _run_import(
    profile: ImportProfile,
    file: UploadFile,
    mode: ImportMode,
    actor,
    store: SqlRecordStore,
    supplied: dict | None = None,
    default_owner_id: str | None = None,
) -> ImportSummary:
    content = await file.read()
    if len(content) > settings.IMPORT_MAX_FILE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.IMPORT_MAX_FILE_BYTES // (1024 * 1024)} MB upload limit.",
        )

    try:
        rows = decode_table(content, detect_format(file.filename))
        pipeline = ImportPipeline(
            profile,
            store,
            build_resolver(mode, store, supplied),
            mode,
            actor_id=actor.id,
            default_owner_id=default_owner_id or None,
        )
        return await pipeline.run(rows)
    except MissingColumnsError as exc:
        logger.info("%s import rejected: missing columns %s", profile.entity, exc.columns)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except ImportRunError as exc:
        logger.info("%s import rejected: %s", profile.entity, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ─── POST /vehicles/bulk-upload ───

@router.post(
    "/vehicles/bulk-upload",
    response_model=BulkUploadResult,
    summary="Bulk import vehicles from CSV/XLSX, flat error list (ADMIN, MANAGER)",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def bulk_upload_vehicles(
    request: Request,
    current_user: Annotated[object, Depends(require_role(*IMPORT_ROLES))],
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
    file: UploadFile = File(...),
    import_mode: ImportMode = Form(default=ImportMode.IDS),
    client_id: str | None = Form(default=None),
):
    summary = await _run_import(
        VEHICLE_PROFILE, file, import_mode, current_user, store, default_owner_id=client_id
    )
    return BulkUploadResult(
        total=summary.total,
        success=summary.succeeded,
        failed=summary.failed,
        truncated=summary.truncated,
        errors=summary.error_messages,
    )


# ─── POST /vehicles/import ───

@router.post(
    "/vehicles/import",
    response_model=ImportSummary,
    summary="Import vehicles from CSV/XLSX with a per-row result ledger (ADMIN, MANAGER)",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_vehicles(
    request: Request,
    current_user: Annotated[object, Depends(require_role(*IMPORT_ROLES))],
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
    file: UploadFile = File(...),
    import_mode: ImportMode = Form(default=ImportMode.NAMES),
    client_id: str | None = Form(default=None),
    clients: str | None = Form(default=None),
    body_types: str | None = Form(default=None),
    vehicle_categories: str | None = Form(default=None),
    vehicle_types: str | None = Form(default=None),
):
    try:
        supplied = _supplied_references(
            clients=(ReferenceCategory.CLIENT, clients),
            body_types=(ReferenceCategory.BODY_TYPE, body_types),
            vehicle_categories=(ReferenceCategory.VEHICLE_CATEGORY, vehicle_categories),
            vehicle_types=(ReferenceCategory.VEHICLE_TYPE, vehicle_types),
        )
    except ReferencePayloadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return await _run_import(
        VEHICLE_PROFILE, file, import_mode, current_user, store,
        supplied=supplied, default_owner_id=client_id,
    )


# ─── GET /vehicles/import/template ───

@router.get(
    "/vehicles/import/template",
    summary="Download the vehicle import template with reference sheets (ADMIN, MANAGER)",
)
async def vehicle_import_template(
    current_user: Annotated[object, Depends(require_role(*IMPORT_ROLES))],
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
):
    content = build_template(
        VEHICLE_PROFILE,
        "Vehicle Template",
        [
            ("Vehicle Types", await store.reference_entries(ReferenceCategory.VEHICLE_TYPE)),
            ("Body Types", await store.reference_entries(ReferenceCategory.BODY_TYPE)),
            ("Vehicle Categories", await store.reference_entries(ReferenceCategory.VEHICLE_CATEGORY)),
            ("Clients", await store.reference_entries(ReferenceCategory.CLIENT)),
        ],
    )
    return _xlsx_response(content, "vehicle_import_template.xlsx")


# ─── POST /stickers/stock/upload ───

@router.post(
    "/stickers/stock/upload",
    response_model=ImportSummary,
    summary="Import sticker stock from CSV/XLSX (ADMIN, MANAGER)",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def upload_sticker_stock(
    request: Request,
    current_user: Annotated[object, Depends(require_role(*IMPORT_ROLES))],
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
    file: UploadFile = File(...),
    import_mode: ImportMode = Form(default=ImportMode.NAMES),
    insurers: str | None = Form(default=None),
    sticker_types: str | None = Form(default=None),
):
    try:
        supplied = _supplied_references(
            insurers=(ReferenceCategory.INSURER, insurers),
            sticker_types=(ReferenceCategory.STICKER_TYPE, sticker_types),
        )
    except ReferencePayloadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return await _run_import(STICKER_STOCK_PROFILE, file, import_mode, current_user, store, supplied=supplied)


# ─── GET /stickers/stock/upload/template ───

@router.get(
    "/stickers/stock/upload/template",
    summary="Download the sticker stock import template (ADMIN, MANAGER)",
)
async def sticker_stock_template(
    current_user: Annotated[object, Depends(require_role(*IMPORT_ROLES))],
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
):
    content = build_template(
        STICKER_STOCK_PROFILE,
        "Template",
        [
            ("Insurers", await store.reference_entries(ReferenceCategory.INSURER)),
            ("Sticker Types", await store.reference_entries(ReferenceCategory.STICKER_TYPE)),
        ],
    )
    return _xlsx_response(content, "sticker_stock_template.xlsx")
