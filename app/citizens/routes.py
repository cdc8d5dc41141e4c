from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.database import get_db
from app.auth.schemas import ProfileResponse, ProfileUpdate
from app.citizens.schemas import (
    AadhaarCreate, AadhaarResponse, AddressCreate, AddressResponse, AddressUpdate,
)
from app.auth.dependencies import get_access_context, require_officer_or_admin
from app.policies import AccessContext
from app.services.citizen_service import CitizenService

router = APIRouter(tags=["Citizen Records"])

# =====================================================
# PROFILE
# =====================================================

@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).get_profile(ctx)

@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    profile_update: ProfileUpdate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).update_profile(ctx, profile_update)

# =====================================================
# ADDRESSES
# =====================================================

@router.get("/addresses", response_model=List[AddressResponse])
def list_addresses(
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).list_addresses(ctx)

@router.post("/addresses", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
def create_address(
    address_data: AddressCreate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).create_address(ctx, address_data)

@router.put("/addresses/{address_id}", response_model=AddressResponse)
def update_address(
    address_id: str,
    address_update: AddressUpdate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).update_address(ctx, address_id, address_update)

@router.delete("/addresses/{address_id}")
def delete_address(
    address_id: str,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    CitizenService(db).delete_address(ctx, address_id)
    return {"message": "Address deleted successfully"}

# =====================================================
# AADHAAR
# =====================================================

@router.get("/aadhaar", response_model=AadhaarResponse)
def get_own_aadhaar(
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).get_aadhaar(ctx, ctx.user_id)

@router.post("/aadhaar", response_model=AadhaarResponse, status_code=status.HTTP_201_CREATED)
def create_aadhaar(
    aadhaar_data: AadhaarCreate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db)
):
    return CitizenService(db).create_aadhaar(ctx, aadhaar_data)

@router.get("/aadhaar/{citizen_id}", response_model=AadhaarResponse)
def get_citizen_aadhaar(
    citizen_id: str,
    ctx: AccessContext = Depends(require_officer_or_admin()),
    db: Session = Depends(get_db)
):
    return CitizenService(db).get_aadhaar(ctx, citizen_id)
