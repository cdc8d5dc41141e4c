import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.schemas import ProfileUpdate
from app.citizens.schemas import AadhaarCreate, AddressCreate, AddressUpdate
from app.exceptions import NotFoundError, ValidationError
from app.models import AadhaarDetails, Address, Profile
from app.policies import AccessContext, Operation, policies

logger = logging.getLogger(__name__)


class CitizenService:
    """Profile, address and Aadhaar records owned by a citizen."""

    def __init__(self, db: Session):
        self.db = db

    # ── Profile ──────────────────────────────────────────────────────

    def get_profile(self, ctx: AccessContext) -> Profile:
        profile = policies.scope(self.db, ctx, Profile).filter(Profile.id == ctx.user_id).first()
        if not profile:
            raise NotFoundError("Profile", ctx.user_id)
        return profile

    def update_profile(self, ctx: AccessContext, data: ProfileUpdate) -> Profile:
        profile = (
            policies.scope(self.db, ctx, Profile, Operation.UPDATE)
            .filter(Profile.id == ctx.user_id)
            .first()
        )
        if not profile:
            raise NotFoundError("Profile", ctx.user_id)

        for field, value in data.dict(exclude_unset=True).items():
            if field == "full_name" and not value:
                continue
            setattr(profile, field, value)

        self.db.commit()
        self.db.refresh(profile)
        return profile

    # ── Addresses ────────────────────────────────────────────────────

    def list_addresses(self, ctx: AccessContext) -> List[Address]:
        return (
            policies.scope(self.db, ctx, Address)
            .order_by(Address.is_primary.desc(), Address.created_at)
            .all()
        )

    def _get_address(self, ctx: AccessContext, address_id: str, operation: Operation) -> Address:
        address = (
            policies.scope(self.db, ctx, Address, operation)
            .filter(Address.id == address_id)
            .first()
        )
        if not address:
            raise NotFoundError("Address", address_id)
        return address

    def _clear_primary(self, ctx: AccessContext, keep_id: str = None) -> None:
        query = policies.scope(self.db, ctx, Address, Operation.UPDATE).filter(Address.is_primary.is_(True))
        if keep_id:
            query = query.filter(Address.id != keep_id)
        for other in query.all():
            other.is_primary = False

    def create_address(self, ctx: AccessContext, data: AddressCreate) -> Address:
        address = Address(citizen_id=ctx.user_id, **data.dict())
        policies.authorize_insert(self.db, ctx, address)
        if address.is_primary:
            self._clear_primary(ctx)
        self.db.add(address)
        self.db.commit()
        self.db.refresh(address)
        return address

    def update_address(self, ctx: AccessContext, address_id: str, data: AddressUpdate) -> Address:
        address = self._get_address(ctx, address_id, Operation.UPDATE)
        update_data = data.dict(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field != "address_line2":
                continue
            setattr(address, field, value)
        if update_data.get("is_primary"):
            self._clear_primary(ctx, keep_id=address.id)
        self.db.commit()
        self.db.refresh(address)
        return address

    def delete_address(self, ctx: AccessContext, address_id: str) -> None:
        address = self._get_address(ctx, address_id, Operation.DELETE)
        self.db.delete(address)
        self.db.commit()

    # ── Aadhaar ──────────────────────────────────────────────────────

    def get_aadhaar(self, ctx: AccessContext, citizen_id: str) -> AadhaarDetails:
        record = (
            policies.scope(self.db, ctx, AadhaarDetails)
            .filter(AadhaarDetails.citizen_id == citizen_id)
            .first()
        )
        if not record:
            raise NotFoundError("Aadhaar details", citizen_id)
        return record

    def create_aadhaar(self, ctx: AccessContext, data: AadhaarCreate) -> AadhaarDetails:
        record = AadhaarDetails(citizen_id=ctx.user_id, **data.dict())
        policies.authorize_insert(self.db, ctx, record)
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Aadhaar details already registered")
        self.db.refresh(record)
        logger.info(f"Aadhaar details recorded for citizen {ctx.user_id}")
        return record
