from pydantic import BaseModel, EmailStr, Field


class SignupForm(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = None
    dob: str | None = None  # YYYY-MM-DD
    pin: str = Field(pattern=r"^[0-9]{4,6}$")


class AccountResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: str | None
    dob: str | None
    email_verified: bool
    profile_created: bool

    model_config = {"from_attributes": True}
