from sqlmodel import Field, SQLModel
from civicdesk.models.base import IDModel, TimestampModel
from civicdesk.models.enums import UserRole, enum_column


class User(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'users'

    email: str = Field(index=True, unique=True)
    hashed_password: str
    full_name: str = ''
    is_active: bool = True
    # Display only. Authorization reads UserRoleGrant rows.
    role: UserRole = Field(default=UserRole.CITIZEN, sa_column=enum_column(UserRole, 'user_role'))
