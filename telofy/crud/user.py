# crud/user.py
from typing import Optional
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from passlib.context import CryptContext

from telofy.models.user import User
from telofy.schemas.user import UserCreate, UserUpdate

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserCRUD:
    """CRUD operations for User model. Callers own the transaction."""

    # =====================================================================
    # HELPER METHODS
    # =====================================================================

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password."""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return pwd_context.verify(plain_password, hashed_password)

    # =====================================================================
    # CREATE OPERATIONS
    # =====================================================================

    def create(self, db: Session, *, obj_in: UserCreate, default_timezone: str) -> User:
        db_obj = User(
            name=obj_in.name,
            email=obj_in.email.lower(),
            password_hash=self.hash_password(obj_in.password),
            timezone=obj_in.timezone or default_timezone,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    # =====================================================================
    # READ OPERATIONS
    # =====================================================================

    def get(self, db: Session, id: UUID) -> Optional[User]:
        return db.query(User).filter(User.id == id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    # =====================================================================
    # UPDATE OPERATIONS
    # =====================================================================

    def update(self, db: Session, *, db_obj: User, obj_in: UserUpdate) -> User:
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    def set_password(self, db: Session, *, db_obj: User, new_password: str) -> User:
        db_obj.password_hash = self.hash_password(new_password)
        db_obj.password_changed_at = datetime.now(timezone.utc)
        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    # =====================================================================
    # DELETE OPERATIONS
    # =====================================================================

    def delete(self, db: Session, *, db_obj: User) -> None:
        db.delete(db_obj)
        db.flush()


crud_user = UserCRUD()
