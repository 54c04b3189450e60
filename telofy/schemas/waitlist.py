# schemas/waitlist.py
from pydantic import BaseModel, EmailStr, field_validator


class WaitlistCreate(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()
