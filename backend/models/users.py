# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base

# Roles recognised by the API
ROLE_ADMIN = "admin"
ROLE_CASHIER = "cashier"
ROLE_CUSTOMER = "customer"
ROLES = (ROLE_ADMIN, ROLE_CASHIER, ROLE_CUSTOMER)

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_CUSTOMER)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
