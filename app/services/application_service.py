import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.applications.lifecycle import apply_transition
from app.applications.schemas import StatusUpdate
from app.config import DOCUMENTS_BUCKET, MOCK_PAYMENT_METHOD
from app.exceptions import (
    IdempotencyKeyReusedError, MissingDocumentsError, NotFoundError, PortalError,
    ServiceUnavailableError, ValidationError,
)
from app.models import (
    Application, ApplicationStatus, AppRole, Document, Payment, PaymentStatus, UserRoleAssignment,
)
from app.policies import AccessContext, Operation, authorize_object, policies
from app.services.catalog_service import CatalogService
from app.storage import LocalBucket, document_path

logger = logging.getLogger(__name__)


@dataclass
class UploadedDocument:
    file_name: str
    content: bytes


def check_required_documents(required: List[str], supplied: Iterable[str]) -> None:
    """Every required label must be supplied and nothing else may be."""
    supplied = list(supplied)
    duplicates = sorted({label for label in supplied if supplied.count(label) > 1})
    if duplicates:
        raise ValidationError(
            f"Duplicate documents for: {', '.join(duplicates)}",
            details={"duplicate_documents": duplicates},
        )

    missing = [label for label in required if label not in supplied]
    if missing:
        raise MissingDocumentsError(missing)

    unexpected = [label for label in supplied if label not in required]
    if unexpected:
        raise ValidationError(
            f"Documents not required by this service: {', '.join(unexpected)}",
            details={"unexpected_documents": unexpected},
        )


def generate_transaction_id() -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    unique_id = str(uuid.uuid4())[:8].upper()
    return f"TXN-{timestamp}-{unique_id}"


class ApplicationService:
    def __init__(self, db: Session, bucket: Optional[LocalBucket] = None):
        self.db = db
        self.bucket = bucket

    def _base_query(self, ctx: AccessContext, operation: Operation = Operation.SELECT):
        return policies.scope(self.db, ctx, Application, operation).options(
            joinedload(Application.service),
            joinedload(Application.citizen),
        )

    # ── Reads ────────────────────────────────────────────────────────

    def list_for_user(
        self,
        ctx: AccessContext,
        status: Optional[ApplicationStatus] = None,
        service_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Application]:
        """Applications visible to the caller: own rows for citizens, all rows for staff."""
        query = self._base_query(ctx)
        if status:
            query = query.filter(Application.status == status)
        if service_id:
            query = query.filter(Application.service_id == service_id)
        return query.order_by(desc(Application.applied_on)).offset(skip).limit(limit).all()

    def get_for_user(self, ctx: AccessContext, application_id: str) -> Application:
        application = (
            self._base_query(ctx)
            .options(joinedload(Application.documents), joinedload(Application.payment))
            .filter(Application.id == application_id)
            .first()
        )
        if not application:
            raise NotFoundError("Application", application_id)
        return application

    def list_documents(self, ctx: AccessContext, application_id: str) -> List[Document]:
        self.get_for_user(ctx, application_id)
        return (
            policies.scope(self.db, ctx, Document)
            .filter(Document.application_id == application_id)
            .order_by(Document.uploaded_at)
            .all()
        )

    def find_by_idempotency_key(self, ctx: AccessContext, key: str) -> Optional[Application]:
        return (
            policies.scope(self.db, ctx, Application)
            .filter(Application.citizen_id == ctx.user_id, Application.idempotency_key == key)
            .first()
        )

    def _replay(self, ctx: AccessContext, key: str, service_id: str) -> Optional[Application]:
        existing = self.find_by_idempotency_key(ctx, key)
        if existing is None:
            return None
        if existing.service_id != service_id:
            raise IdempotencyKeyReusedError(key, existing.service_id)
        logger.info(f"Idempotent replay of application {existing.id} for user {ctx.user_id}")
        return self.get_for_user(ctx, existing.id)

    # ── Submission ───────────────────────────────────────────────────

    async def submit(
        self,
        ctx: AccessContext,
        service_id: str,
        uploads: Dict[str, UploadedDocument],
        idempotency_key: Optional[str] = None
    ) -> Tuple[Application, bool]:
        """Create an application with its documents and payment.

        Returns ``(application, created)``; ``created`` is False when the
        idempotency key matched an earlier submission.
        """
        service = CatalogService(self.db).get_service(ctx, service_id)
        if not service.is_active:
            raise ServiceUnavailableError(service_id)

        check_required_documents(list(service.required_documents or []), uploads.keys())

        if idempotency_key:
            existing = self._replay(ctx, idempotency_key, service.id)
            if existing:
                return existing, False

        if self.bucket is None:
            raise PortalError("Document storage is not configured", code="STORAGE_ERROR")

        uploaded_paths: List[str] = []
        try:
            application = Application(
                citizen_id=ctx.user_id,
                service_id=service.id,
                status=ApplicationStatus.PENDING,
                idempotency_key=idempotency_key,
            )
            policies.authorize_insert(self.db, ctx, application)
            self.db.add(application)
            self.db.flush()  # Get the ID

            for index, doc_type in enumerate(service.required_documents, 1):
                upload = uploads[doc_type]
                path = document_path(ctx.user_id, application.id, index, doc_type, upload.file_name)
                authorize_object(ctx, DOCUMENTS_BUCKET, path, Operation.INSERT)
                await self.bucket.upload(path, upload.content)
                uploaded_paths.append(path)

                document = Document(
                    application_id=application.id,
                    file_name=upload.file_name,
                    file_url=self.bucket.get_public_url(path),
                    storage_path=path,
                    doc_type=doc_type,
                )
                policies.authorize_insert(self.db, ctx, document)
                self.db.add(document)

            payment = Payment(
                application_id=application.id,
                transaction_id=generate_transaction_id(),
                amount=service.fee,
                status=PaymentStatus.COMPLETED,  # mock payment completion
                payment_method=MOCK_PAYMENT_METHOD,
                paid_at=datetime.now(timezone.utc),
            )
            policies.authorize_insert(self.db, ctx, payment)
            self.db.add(payment)

            self.db.commit()
        except IntegrityError:
            await self._abort(uploaded_paths)
            existing = self._replay(ctx, idempotency_key, service.id) if idempotency_key else None
            if existing:
                return existing, False
            logger.exception(f"Failed to submit application for service {service_id}")
            raise PortalError("Failed to submit application", code="SUBMISSION_FAILED")
        except PortalError:
            await self._abort(uploaded_paths)
            raise
        except Exception as e:
            await self._abort(uploaded_paths)
            logger.exception(f"Failed to submit application for service {service_id}")
            raise PortalError(f"Failed to submit application: {str(e)}", code="SUBMISSION_FAILED")

        logger.info(
            f"Application {application.id} submitted by {ctx.user_id} for '{service.name}' "
            f"with {len(uploaded_paths)} documents"
        )
        return self.get_for_user(ctx, application.id), True

    async def _abort(self, uploaded_paths: List[str]) -> None:
        """Roll back the transaction and delete objects uploaded so far."""
        self.db.rollback()
        if uploaded_paths:
            await self.bucket.remove(uploaded_paths)
            logger.warning(f"Removed {len(uploaded_paths)} orphaned objects after failed submission")

    # ── Lifecycle ────────────────────────────────────────────────────

    def _require_reviewer(self, user_id: str) -> None:
        reviewer = (
            self.db.query(UserRoleAssignment.id)
            .filter(
                UserRoleAssignment.user_id == user_id,
                UserRoleAssignment.role.in_([AppRole.OFFICER, AppRole.ADMIN]),
            )
            .first()
        )
        if reviewer is None:
            raise ValidationError("Assigned user is not an officer", details={"officer_id": user_id})

    def update_status(self, ctx: AccessContext, application_id: str, update: StatusUpdate) -> Application:
        """Apply an officer/admin status transition."""
        application = (
            policies.scope(self.db, ctx, Application, Operation.UPDATE)
            .filter(Application.id == application_id)
            .first()
        )
        if not application:
            visible = self._base_query(ctx).filter(Application.id == application_id).first()
            if visible:
                policies.authorize_row(self.db, ctx, visible, Operation.UPDATE)
            raise NotFoundError("Application", application_id)

        officer_id = ctx.user_id if update.assign_to_me else update.officer_id
        if officer_id is not None and officer_id != ctx.user_id:
            self._require_reviewer(officer_id)

        previous = ApplicationStatus(application.status)
        apply_transition(application, update.status, remarks=update.remarks, officer_id=officer_id)
        self.db.commit()

        logger.info(
            f"Application {application_id} moved {previous.value} -> {update.status.value} by {ctx.user_id}"
        )
        return self.get_for_user(ctx, application_id)
