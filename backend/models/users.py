# backend/models/users.py
import uuid

from sqlalchemy import Column, String, Uuid
from database import Base

ROLE_CUSTOMER = "customer"
ROLE_CHEF = "chef"
ROLE_ADMIN = "admin"
ROLES = (ROLE_CUSTOMER, ROLE_CHEF, ROLE_ADMIN)

# Represents a user account with authentication details and marketplace role
class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_CUSTOMER)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
