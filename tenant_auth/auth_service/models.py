from sqlalchemy import Column, String, DateTime, CheckConstraint
from datetime import datetime, timezone
from .db import Base
import uuid

ROLES = ("user", "admin")


def new_internal_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"
    internal_id = Column(String(32), primary_key=True, default=new_internal_id)
    external_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, default="user", nullable=False)
    password_salt = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    def to_dict(self) -> dict:
        """
        Serialize a User for diagnostics. Credentials are never included.
        """
        return {
            "internal_id": self.internal_id,
            "external_id": self.external_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
