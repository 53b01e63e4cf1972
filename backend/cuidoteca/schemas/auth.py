from pydantic import BaseModel, EmailStr, Field, model_validator

from cuidoteca.models.user import UserRole


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=100)
    role: UserRole
    phone: str | None = None
    university_id: str | None = None
    course: str | None = None
    semester: str | None = None
    address: str | None = None
    institution_name: str | None = None  # required for institutions

    @model_validator(mode="after")
    def check_role(self) -> "RegisterRequest":
        if self.role is UserRole.COORDINATOR:
            raise ValueError("Coordenadores não podem se cadastrar pelo aplicativo")
        if self.role is UserRole.INSTITUTION and not self.institution_name:
            raise ValueError("Informe o nome da instituição")
        return self


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = None
    course: str | None = None
    semester: str | None = None
    address: str | None = None
    institution_name: str | None = Field(default=None, min_length=1, max_length=200)
    profile_picture: str | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)
    new_password_confirm: str = Field(min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(min_length=8)
