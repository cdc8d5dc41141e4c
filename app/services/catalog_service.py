import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.catalog.schemas import DepartmentCreate, ServiceCreate, ServiceUpdate
from app.exceptions import NotFoundError, ValidationError
from app.models import Department, Service
from app.policies import AccessContext, Operation, policies

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: Session):
        self.db = db

    # ── Departments ──────────────────────────────────────────────────

    def list_departments(self, ctx: AccessContext) -> List[Department]:
        return policies.scope(self.db, ctx, Department).order_by(Department.name).all()

    def create_department(self, ctx: AccessContext, data: DepartmentCreate) -> Department:
        department = Department(name=data.name.strip(), description=data.description)
        policies.authorize_insert(self.db, ctx, department)
        self.db.add(department)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("A department with this name already exists")
        self.db.refresh(department)
        logger.info(f"Department '{department.name}' created by {ctx.user_id}")
        return department

    # ── Services ─────────────────────────────────────────────────────

    def list_services(self, ctx: AccessContext, department_id: Optional[str] = None) -> List[Service]:
        """Services visible to the caller; inactive ones only show up for admins."""
        query = policies.scope(self.db, ctx, Service).options(joinedload(Service.department))
        if department_id:
            query = query.filter(Service.department_id == department_id)
        return query.order_by(Service.name).all()

    def get_service(self, ctx: AccessContext, service_id: str) -> Service:
        service = (
            policies.scope(self.db, ctx, Service)
            .options(joinedload(Service.department))
            .filter(Service.id == service_id)
            .first()
        )
        if not service:
            raise NotFoundError("Service", service_id)
        return service

    def _require_department(self, ctx: AccessContext, department_id: str) -> None:
        if not policies.scope(self.db, ctx, Department).filter(Department.id == department_id).first():
            raise NotFoundError("Department", department_id)

    def create_service(self, ctx: AccessContext, data: ServiceCreate) -> Service:
        self._require_department(ctx, data.department_id)
        service = Service(**data.dict())
        policies.authorize_insert(self.db, ctx, service)
        self.db.add(service)
        self.db.commit()
        logger.info(f"Service '{service.name}' created by {ctx.user_id}")
        return self.get_service(ctx, service.id)

    def update_service(self, ctx: AccessContext, service_id: str, data: ServiceUpdate) -> Service:
        service = self.get_service(ctx, service_id)
        policies.authorize_row(self.db, ctx, service, Operation.UPDATE)

        update_data = data.dict(exclude_unset=True)
        if update_data.get("department_id"):
            self._require_department(ctx, update_data["department_id"])
        for field, value in update_data.items():
            if value is None and field != "description":
                continue
            setattr(service, field, value)

        self.db.commit()
        logger.info(f"Service {service_id} updated by {ctx.user_id}: {sorted(update_data)}")
        return self.get_service(ctx, service_id)
