from fastapi import APIRouter, Depends, File, Form, Header, Query, Response, UploadFile, status
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from app.database import get_db
from app.models import ApplicationStatus
from app.applications.lifecycle import allowed_transitions, is_terminal
from app.applications.schemas import (
    ApplicationListResponse, ApplicationResponse, DocumentResponse, StatusUpdate, TransitionOptions,
)
from app.auth.dependencies import get_access_context, require_citizen, require_officer_or_admin
from app.exceptions import ValidationError
from app.policies import AccessContext
from app.services.application_service import ApplicationService, UploadedDocument
from app.storage import LocalBucket, get_bucket, validate_size, validate_upload

router = APIRouter(prefix="/applications", tags=["Applications"])

# =====================================================
# SUBMISSION
# =====================================================

@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    response: Response,
    service_id: str = Form(...),
    doc_types: List[str] = Form(default=[]),
    files: List[UploadFile] = File(default=[]),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=64),
    ctx: AccessContext = Depends(require_citizen()),
    db: Session = Depends(get_db),
    bucket: LocalBucket = Depends(get_bucket)
):
    """Submit an application with one file per required document.

    ``doc_types[i]`` names the requirement that ``files[i]`` satisfies.
    """
    if len(doc_types) != len(files):
        raise ValidationError(
            "Each uploaded file needs exactly one document type",
            details={"doc_types": len(doc_types), "files": len(files)},
        )

    uploads: Dict[str, UploadedDocument] = {}
    for doc_type, file in zip(doc_types, files):
        validate_upload(file)
        content = await file.read()
        validate_size(file.filename, content)
        label = doc_type.strip()
        if label in uploads:
            raise ValidationError(
                f"Duplicate documents for: {label}", details={"duplicate_documents": [label]}
            )
        uploads[label] = UploadedDocument(file_name=file.filename, content=content)

    application, created = await ApplicationService(db, bucket).submit(
        ctx, service_id, uploads, idempotency_key
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return application

# =====================================================
# READS
# =====================================================

@router.get("", response_model=List[ApplicationListResponse])
def list_applications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    status: Optional[ApplicationStatus] = None,
    service_id: Optional[str] = None,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    """Citizens get their own applications; officers and admins get all of them."""
    return ApplicationService(db).list_for_user(ctx, status, service_id, skip, limit)

@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: str,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return ApplicationService(db).get_for_user(ctx, application_id)

@router.get("/{application_id}/documents", response_model=List[DocumentResponse])
def list_application_documents(
    application_id: str,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return ApplicationService(db).list_documents(ctx, application_id)

@router.get("/{application_id}/transitions", response_model=TransitionOptions)
def get_transitions(
    application_id: str,
    ctx: AccessContext = Depends(require_officer_or_admin()),
    db: Session = Depends(get_db)
):
    application = ApplicationService(db).get_for_user(ctx, application_id)
    current = ApplicationStatus(application.status)
    return TransitionOptions(
        status=current,
        allowed=sorted(allowed_transitions(current), key=lambda s: s.value),
        terminal=is_terminal(current),
    )

# =====================================================
# REVIEW
# =====================================================

@router.patch("/{application_id}/status", response_model=ApplicationResponse)
def update_application_status(
    application_id: str,
    status_update: StatusUpdate,
    ctx: AccessContext = Depends(require_officer_or_admin()),
    db: Session = Depends(get_db)
):
    return ApplicationService(db).update_status(ctx, application_id, status_update)
