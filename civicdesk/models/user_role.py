from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel
from civicdesk.models.base import IDModel, TimestampModel
from civicdesk.models.enums import UserRole, enum_column


class UserRoleGrant(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'user_roles'
    __table_args__ = (UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),)

    user_id: str = Field(index=True)
    role: UserRole = Field(sa_column=enum_column(UserRole, 'user_role_grant'))
