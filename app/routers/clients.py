# =============================================================================
# app/routers/clients.py - Client Intake Endpoint
# =============================================================================
# Accepts the moderator intake form (multipart) and creates the client with
# its services, files and payment in one compensating transaction.
# =============================================================================

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from app.auth import AuthUser, require_roles
from app.exceptions import PayloadValidationError, format_validation_errors
from core.models.client import ClientCreate, ClientCreateResponse, UploadedFile
from core.models.user import INTAKE_ROLES
from core.services.client_service import ClientIntakeService
from core.services.upload_rules import check_file_count, check_file_size

logger = logging.getLogger(__name__)

router = APIRouter()

# Repeated form fields ("name[]" or plain "name")
LIST_FIELDS = {"requested_services"}
FILE_FIELDS = {"files[]", "files"}
SCREENSHOT_FIELD = "payment_screenshot"


# =============================================================================
# Helper Functions
# =============================================================================

async def _read_upload(upload: UploadFile) -> UploadedFile:
    """Read a multipart file part into memory."""
    content = await upload.read()
    await upload.close()
    return UploadedFile(
        filename=upload.filename or "file",
        content_type=upload.content_type or "application/octet-stream",
        content=content,
    )


def _is_empty_upload(upload: UploadFile) -> bool:
    """Browsers send an unnamed, empty part for an untouched file input."""
    return not upload.filename and not upload.size


def parse_intake_form(
    form: FormData,
) -> tuple[dict[str, Any], list[UploadFile], UploadFile | None]:
    """
    Split a multipart intake form into fields, document parts and screenshot part.

    File parts are returned unread so their count and size can be checked
    before any content is loaded.

    Returns:
        (fields for ClientCreate, document parts in request order, screenshot part)
    """
    fields: dict[str, Any] = {}
    file_parts: list[UploadFile] = []
    screenshot_part: UploadFile | None = None

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if _is_empty_upload(value):
                continue
            if key in FILE_FIELDS:
                file_parts.append(value)
            elif key == SCREENSHOT_FIELD:
                screenshot_part = value
            else:
                logger.debug(f"Ignoring unexpected file part '{key}'")
            continue

        name = key[:-2] if key.endswith("[]") else key
        if name in LIST_FIELDS:
            fields.setdefault(name, []).append(value)
        elif name != SCREENSHOT_FIELD:
            fields[name] = value

    return fields, file_parts, screenshot_part


def check_part_limits(file_parts: list[UploadFile], screenshot_part: UploadFile | None) -> None:
    """Reject too many or oversized parts using the sizes the parser recorded."""
    check_file_count(len(file_parts))
    parts = file_parts + ([screenshot_part] if screenshot_part is not None else [])
    for part in parts:
        if part.size is not None:
            check_file_size(part.filename or "file", part.size)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", status_code=201, response_model=ClientCreateResponse)
async def create_client(
    request: Request,
    user: AuthUser = Depends(require_roles(*INTAKE_ROLES)),
):
    """
    Create a client from the intake form.

    This endpoint:
    1. Requires a moderator or admin session (401/403 otherwise)
    2. Validates the form fields (400 with per-field errors)
    3. Checks file count, size and type (400)
    4. Inserts the client, links services, uploads files, records payment
       - rolling back everything already written if any step fails (500)

    Returns {"id": "<client uuid>"} with status 201.
    """
    form = await request.form()
    fields, file_parts, screenshot_part = parse_intake_form(form)

    try:
        data = ClientCreate.model_validate(fields)
    except ValidationError as e:
        errors = format_validation_errors(e.errors())
        logger.info(f"Intake from {user.id} rejected: {len(errors)} field error(s)")
        raise PayloadValidationError(errors)

    # The screenshot only matters when something is owed
    if not data.has_payment:
        screenshot_part = None
    check_part_limits(file_parts, screenshot_part)

    files = [await _read_upload(part) for part in file_parts]
    screenshot = await _read_upload(screenshot_part) if screenshot_part else None

    logger.info(
        f"Intake from {user.id} ({user.role.value}): "
        f"{len(files)} file(s), screenshot={'yes' if screenshot else 'no'}"
    )

    client_id = await run_in_threadpool(
        ClientIntakeService.create_client,
        data,
        user.id,
        files,
        screenshot,
    )

    return ClientCreateResponse(id=client_id)
