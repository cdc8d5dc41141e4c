from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal
from app.models import ApplicationStatus, PaymentStatus
from app.catalog.schemas import ServiceBasic

class CitizenBasic(BaseModel):
    id: str
    full_name: str
    email: str

    class Config:
        from_attributes = True

# Document schemas
class DocumentResponse(BaseModel):
    id: str
    application_id: str
    file_name: str
    file_url: str
    doc_type: str
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Payment schemas
class PaymentResponse(BaseModel):
    id: str
    application_id: str
    transaction_id: Optional[str] = None
    amount: Decimal
    status: PaymentStatus
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Application schemas
class ApplicationListResponse(BaseModel):
    id: str
    citizen_id: str
    service_id: str
    officer_id: Optional[str] = None
    status: ApplicationStatus
    remarks: Optional[str] = None
    applied_on: Optional[datetime] = None
    completed_on: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Relationships
    service: Optional[ServiceBasic] = None
    citizen: Optional[CitizenBasic] = None

    class Config:
        from_attributes = True

class ApplicationResponse(ApplicationListResponse):
    documents: List[DocumentResponse] = Field(default_factory=list)
    payment: Optional[PaymentResponse] = None

class StatusUpdate(BaseModel):
    status: ApplicationStatus
    remarks: Optional[str] = Field(None, max_length=2000)
    officer_id: Optional[str] = None
    assign_to_me: bool = False

class TransitionOptions(BaseModel):
    status: ApplicationStatus
    allowed: List[ApplicationStatus]
    terminal: bool

# Admin statistics
class ApplicationStats(BaseModel):
    total_applications: int
    pending_applications: int
    approved_applications: int
    rejected_applications: int
    by_status: Dict[str, int]
    total_revenue: Decimal
    total_citizens: int
