"""
Company API Routes
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import get_current_user, get_tenant_context
from woodflow.models import User
from woodflow.schemas import CompanyCreate, CompanyResponse, MyCompanyResponse
from woodflow.services.access_service import TenantContext
from woodflow.services.company_service import CompanyService

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    data: CompanyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a company owned by the caller and switch to it"""
    company = CompanyService(db).create(data, current_user)
    db.commit()
    return company


@router.get("", response_model=List[MyCompanyResponse])
async def list_my_companies(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    memberships = CompanyService(db).companies_for_user(current_user)
    return [
        {
            "index": index,
            "is_active": index == current_user.active_company_index,
            "company": m.company,
            "membership": m,
        }
        for index, m in enumerate(memberships)
    ]


@router.get("/active", response_model=CompanyResponse)
async def get_active_company(ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return CompanyService(db).get_by_id(ctx.company_id)
