from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.database import get_db
from app.catalog.schemas import (
    DepartmentCreate, DepartmentResponse, ServiceCreate, ServiceUpdate, ServiceResponse,
)
from app.auth.dependencies import get_optional_access_context, require_admin
from app.policies import AccessContext
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Service Catalog"])

# =====================================================
# DEPARTMENTS
# =====================================================

@router.get("/departments", response_model=List[DepartmentResponse])
def list_departments(
    ctx: AccessContext = Depends(get_optional_access_context),
    db: Session = Depends(get_db)
):
    return CatalogService(db).list_departments(ctx)

@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    department_data: DepartmentCreate,
    ctx: AccessContext = Depends(require_admin()),
    db: Session = Depends(get_db)
):
    return CatalogService(db).create_department(ctx, department_data)

# =====================================================
# SERVICES
# =====================================================

@router.get("/services", response_model=List[ServiceResponse])
def list_services(
    department_id: Optional[str] = None,
    ctx: AccessContext = Depends(get_optional_access_context),
    db: Session = Depends(get_db)
):
    """List services; inactive services are only returned to admins."""
    return CatalogService(db).list_services(ctx, department_id)

@router.get("/services/{service_id}", response_model=ServiceResponse)
def get_service(
    service_id: str,
    ctx: AccessContext = Depends(get_optional_access_context),
    db: Session = Depends(get_db)
):
    return CatalogService(db).get_service(ctx, service_id)

@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    service_data: ServiceCreate,
    ctx: AccessContext = Depends(require_admin()),
    db: Session = Depends(get_db)
):
    return CatalogService(db).create_service(ctx, service_data)

@router.patch("/services/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: str,
    service_update: ServiceUpdate,
    ctx: AccessContext = Depends(require_admin()),
    db: Session = Depends(get_db)
):
    return CatalogService(db).update_service(ctx, service_id, service_update)
