import uuid
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests; chefs are promoted by an admin
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    first_name: str
    last_name: str
    phone: Optional[str] = None

# Output schema for user profile details
class UserResponse(UserBase):
    id: uuid.UUID
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: Literal["customer", "chef", "admin"]
