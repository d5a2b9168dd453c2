"""Uploads router - supporting documents for insurance items."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from insurance_portal.core.deps import get_current_session, require_csrf_header
from insurance_portal.core.structured_logging import build_log_context
from insurance_portal.schemas.auth import UserSession
from insurance_portal.schemas.upload import UploadResponse
from insurance_portal.services import upload_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=UploadResponse)
def upload_file(
    file: Annotated[UploadFile | None, File()] = None,
    session: UserSession = Depends(get_current_session),
    _: None = Depends(require_csrf_header),
):
    """
    Store one file and return its public URL.

    The URL is what goes into a document's `fileUrl` on the form.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        stored = upload_service.store_upload(file.filename, file.file)
    except upload_service.UploadTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except OSError:
        logger.exception(
            "Upload could not be stored",
            extra=build_log_context(user_id=str(session.user_id), org_id=str(session.org_id)),
        )
        raise HTTPException(status_code=500, detail="Failed to store file. Please try again.")

    return UploadResponse(file_url=stored.file_url, name=stored.name)
