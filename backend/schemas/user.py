from pydantic import BaseModel, EmailStr, Field
from typing import Optional

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for admin sign-in credentials
class UserLogin(UserBase):
    password: str

# Output schema for admin profile details
class UserResponse(UserBase):
    id: int
    role: str
    display_name: Optional[str] = None

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for profile updates from the settings screen
class ProfileUpdate(BaseModel):
    display_name: str = Field(min_length=1)

# Schema for password changes (requires re-entering the current password)
class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)
    confirm_password: str
