# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base

ROLE_USER = "User"
ROLE_ADMIN = "Admin"

# Represents a storefront account with authentication details and role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == ROLE_ADMIN.lower()
