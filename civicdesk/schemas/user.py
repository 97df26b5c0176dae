from pydantic import BaseModel, EmailStr
from civicdesk.models.enums import UserRole


class UserOut(BaseModel):
    id: str
    email: EmailStr
    full_name: str
    is_active: bool
    role: UserRole
    roles: list[UserRole] = []
