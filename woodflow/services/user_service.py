"""
User Service - Business Logic for User Operations
"""
from datetime import datetime
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload

from woodflow.core.exceptions import Conflict, InvalidInput, NoActiveCompany
from woodflow.core.security import get_password_hash, verify_password
from woodflow.models import User, Membership
from woodflow.schemas import SignupRequest


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_with_memberships(self, user_id: int) -> Optional[User]:
        return self.db.query(User)\
            .options(joinedload(User.memberships).joinedload(Membership.company))\
            .filter(User.id == user_id)\
            .first()

    def create(self, signup: SignupRequest) -> User:
        if self.get_by_email(signup.email):
            raise Conflict("Email already registered")

        user = User(
            email=signup.email.lower(),
            full_name=signup.full_name.strip(),
            phone=signup.phone,
            hashed_password=get_password_hash(signup.password),
            active_company_index=0,
        )
        self.db.add(user)
        self.db.flush()
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        user.last_login = datetime.utcnow()
        self.db.flush()
        return user

    def switch_company(self, user: User, index: int) -> User:
        memberships: List[Membership] = list(user.memberships)
        if not memberships:
            raise NoActiveCompany()
        if index >= len(memberships):
            raise InvalidInput(f"Company index {index} is out of range")
        user.active_company_index = index
        self.db.flush()
        return user
