from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime

from schemas.base import ORMBase

# Shared properties for user models
class UserBase(ORMBase):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    username: str
    role: str
    created_at: Optional[datetime] = None

# Schema for JWT authentication token response
class Token(ORMBase):
    token: str
    token_type: str = "bearer"

class MessageResponse(ORMBase):
    message: str
