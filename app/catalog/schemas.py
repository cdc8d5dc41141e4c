from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


def _clean_labels(labels: Optional[List[str]]) -> Optional[List[str]]:
    if labels is None:
        return labels
    cleaned = [label.strip() for label in labels]
    if any(not label for label in cleaned):
        raise ValueError("Document labels cannot be blank")
    if len(set(cleaned)) != len(cleaned):
        raise ValueError("Document labels must be unique")
    return cleaned


# Department schemas
class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None

class DepartmentResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DepartmentBasic(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


# Service schemas
class ServiceCreate(BaseModel):
    department_id: str
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    fee: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    required_documents: List[str] = Field(default_factory=list)
    processing_time_days: int = Field(7, ge=0)
    is_active: bool = True

    @field_validator("required_documents")
    @classmethod
    def check_labels(cls, value):
        return _clean_labels(value)

class ServiceUpdate(BaseModel):
    department_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    required_documents: Optional[List[str]] = None
    processing_time_days: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("required_documents")
    @classmethod
    def check_labels(cls, value):
        return _clean_labels(value)

class ServiceResponse(BaseModel):
    id: str
    department_id: str
    name: str
    description: Optional[str] = None
    fee: Decimal
    required_documents: List[str]
    processing_time_days: int
    is_active: bool
    created_at: Optional[datetime] = None
    department: Optional[DepartmentBasic] = None

    class Config:
        from_attributes = True

class ServiceBasic(BaseModel):
    id: str
    name: str
    fee: Decimal

    class Config:
        from_attributes = True
