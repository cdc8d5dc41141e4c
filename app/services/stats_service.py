from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Application, ApplicationStatus, AppRole, Service, UserRoleAssignment
from app.policies import AccessContext, policies


class StatsService:
    def __init__(self, db: Session):
        self.db = db

    def get_application_stats(self, ctx: AccessContext) -> Dict[str, Any]:
        """Dashboard counts over the applications visible to *ctx*.

        Revenue is the sum of service fees over approved applications.
        """
        base_query = policies.scope(self.db, ctx, Application)

        status_stats = base_query.with_entities(
            Application.status, func.count(Application.id)
        ).group_by(Application.status).all()

        by_status = {s.value: 0 for s in ApplicationStatus}
        for status, count in status_stats:
            by_status[ApplicationStatus(status).value] = count

        revenue = (
            base_query.join(Service, Service.id == Application.service_id)
            .filter(Application.status == ApplicationStatus.APPROVED)
            .with_entities(func.coalesce(func.sum(Service.fee), 0))
            .scalar()
        )

        total_citizens = (
            policies.scope(self.db, ctx, UserRoleAssignment)
            .filter(UserRoleAssignment.role == AppRole.CITIZEN)
            .with_entities(func.count(func.distinct(UserRoleAssignment.user_id)))
            .scalar()
        )

        return {
            "total_applications": sum(by_status.values()),
            "pending_applications": by_status[ApplicationStatus.PENDING.value],
            "approved_applications": by_status[ApplicationStatus.APPROVED.value],
            "rejected_applications": by_status[ApplicationStatus.REJECTED.value],
            "by_status": by_status,
            "total_revenue": Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
            "total_citizens": total_citizens or 0,
        }
