"""
Company Service - tenant creation and lookup
"""
from typing import Optional, List
from sqlalchemy.orm import Session

from woodflow.core.exceptions import Conflict, NotFound
from woodflow.models import Company, CompanySettings, Membership, MembershipRole, User, PERMISSION_MODULES
from woodflow.schemas import CompanyCreate


def full_permissions() -> dict:
    return {module: True for module in PERMISSION_MODULES}


class CompanyService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, company_id: int) -> Company:
        company = self.db.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFound("Company not found")
        return company

    def get_by_name(self, name: str) -> Optional[Company]:
        return self.db.query(Company).filter(Company.name == name).first()

    def create(self, data: CompanyCreate, owner: User) -> Company:
        """Create a company; the caller becomes its owner and it becomes their active company."""
        if self.get_by_name(data.name.strip()):
            raise Conflict("A company with this name already exists")

        company = Company(
            name=data.name.strip(),
            email=data.email,
            phone=data.phone,
            address=data.address,
            owner_id=owner.id,
        )
        self.db.add(company)
        self.db.flush()

        membership = Membership(
            user_id=owner.id,
            company_id=company.id,
            role=MembershipRole.OWNER.value,
            position="Owner",
            permissions=full_permissions(),
            access_granted=True,
        )
        self.db.add(membership)
        self.db.add(CompanySettings(company_id=company.id))
        self.db.flush()

        self.db.refresh(owner)
        owner.active_company_index = [m.id for m in owner.memberships].index(membership.id)
        self.db.flush()
        return company

    def companies_for_user(self, user: User) -> List[Membership]:
        return list(user.memberships)
