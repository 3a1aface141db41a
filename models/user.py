from pydantic import BaseModel, EmailStr, Field
from typing import Optional

class UserCreate(BaseModel):
    email: EmailStr
    full_name: str
    password: str = Field(min_length=8)

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class RestaurantAssociation(BaseModel):
    id: Optional[str] = None
    role: Optional[str] = None

class UserOut(BaseModel):
    id: str | None = None
    email: str
    full_name: str | None = None
    email_confirmed: bool = False
    restaurant: Optional[RestaurantAssociation] = None

class SignupResponse(BaseModel):
    id: str
    email: str
    verification_token: str
