# schemas/user.py
from pydantic import BaseModel, EmailStr
from datetime import datetime
from typing import Optional

class UserBase(BaseModel):
    email: EmailStr

class UserInDB(UserBase):
    id: Optional[str] = None
    password: str
    created_at: datetime

class UserResponse(UserBase):
    id: str
    created_at: datetime
