from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime

# Address schemas
class AddressCreate(BaseModel):
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field("Goa", min_length=1, max_length=100)
    pincode: str = Field(..., pattern=r"^\d{6}$")
    is_primary: bool = False

class AddressUpdate(BaseModel):
    address_line1: Optional[str] = Field(None, min_length=1)
    address_line2: Optional[str] = None
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    pincode: Optional[str] = Field(None, pattern=r"^\d{6}$")
    is_primary: Optional[bool] = None

class AddressResponse(BaseModel):
    id: str
    citizen_id: str
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    pincode: str
    is_primary: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Aadhaar schemas
class AadhaarCreate(BaseModel):
    aadhaar_number: str = Field(..., pattern=r"^\d{12}$")
    date_of_birth: date
    gender: str = Field(..., min_length=1, max_length=20)

class AadhaarResponse(BaseModel):
    id: str
    citizen_id: str
    aadhaar_number: str
    date_of_birth: date
    gender: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
