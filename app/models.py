from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, ForeignKey, Enum, Date, DECIMAL, JSON, Integer,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum
import uuid

# =====================================================
# ENUMS
# =====================================================

class AppRole(str, enum.Enum):
    CITIZEN = "citizen"
    OFFICER = "officer"
    ADMIN = "admin"

class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    ADDITIONAL_INFO_REQUIRED = "additional_info_required"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


def _enum_column_type(enum_cls, name):
    # persist the lowercase values, not the member names
    return Enum(enum_cls, name=name, values_callable=lambda e: [member.value for member in e])


def generate_uuid() -> str:
    return str(uuid.uuid4())

# =====================================================
# IDENTITY, PROFILES & ROLES
# =====================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login = Column(DateTime(timezone=True))

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False)
    roles = relationship("UserRoleAssignment", back_populates="user")
    sessions = relationship("UserSession", back_populates="user")

class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    user_agent = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="sessions")

class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the identity row
    id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), nullable=False)
    phone = Column(String(20))
    full_name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="profile")

class UserRoleAssignment(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(_enum_column_type(AppRole, "app_role"), nullable=False, default=AppRole.CITIZEN, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="roles")

# =====================================================
# CITIZEN RECORDS
# =====================================================

class AadhaarDetails(Base):
    __tablename__ = "aadhaar_details"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    citizen_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    aadhaar_number = Column(String(12), nullable=False, unique=True)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class Address(Base):
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    citizen_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    address_line1 = Column(Text, nullable=False)
    address_line2 = Column(Text)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False, default="Goa")
    pincode = Column(String(6), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# =====================================================
# SERVICE CATALOG
# =====================================================

class Department(Base):
    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    services = relationship("Service", back_populates="department")

class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("fee >= 0", name="ck_services_fee_non_negative"),
        CheckConstraint("processing_time_days >= 0", name="ck_services_processing_time_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    fee = Column(DECIMAL(10, 2), nullable=False, default=0)
    required_documents = Column(JSON, nullable=False, default=list)  # ordered list of labels
    processing_time_days = Column(Integer, nullable=False, default=7)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    department = relationship("Department", back_populates="services")
    applications = relationship("Application", back_populates="service")

# =====================================================
# APPLICATIONS, DOCUMENTS & PAYMENTS
# =====================================================

class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("citizen_id", "idempotency_key", name="uq_applications_citizen_idempotency_key"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    citizen_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    officer_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    status = Column(
        _enum_column_type(ApplicationStatus, "application_status"),
        nullable=False, default=ApplicationStatus.PENDING, index=True,
    )
    remarks = Column(Text)
    idempotency_key = Column(String(64))
    applied_on = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    completed_on = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    service = relationship("Service", back_populates="applications")
    citizen = relationship("Profile", primaryjoin="foreign(Application.citizen_id) == Profile.id", viewonly=True)
    documents = relationship("Document", back_populates="application", order_by="Document.uploaded_at")
    payment = relationship("Payment", back_populates="application", uselist=False)

class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    storage_path = Column(String(500), nullable=False)
    doc_type = Column(String(255), nullable=False)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    application = relationship("Application", back_populates="documents")

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(String(100), unique=True)
    amount = Column(DECIMAL(10, 2), nullable=False)
    status = Column(_enum_column_type(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING)
    payment_method = Column(String(50))
    paid_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    application = relationship("Application", back_populates="payment")
