from pydantic import BaseModel, EmailStr


class AdminVerifyUserRequest(BaseModel):
    email: EmailStr
