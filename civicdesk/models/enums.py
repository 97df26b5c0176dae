from enum import Enum
import sqlalchemy as sa
from sqlalchemy import Column


class UserRole(str, Enum):
    CITIZEN = 'citizen'
    EMPLOYEE = 'employee'
    ADMIN = 'admin'


class ReportKind(str, Enum):
    ISSUE = 'issue'
    BUILDING = 'building'


class IssueStatus(str, Enum):
    PENDING = 'pending'
    PENDING_APPROVED = 'pending_approved'
    UNDER_REVIEW = 'under_review'
    UNDER_MAINTENANCE = 'under_maintenance'
    RESOLVED = 'resolved'


class BuildingStatus(str, Enum):
    PENDING = 'pending'
    CRITICAL = 'critical'
    UNDER_MAINTENANCE = 'under_maintenance'
    RESOLVED = 'resolved'


class ChangeType(str, Enum):
    INSERT = 'INSERT'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'


ISSUES_TABLE = 'issues'
BUILDINGS_TABLE = 'buildings_at_risk'

TABLE_FOR_KIND = {
    ReportKind.ISSUE: ISSUES_TABLE,
    ReportKind.BUILDING: BUILDINGS_TABLE,
}

STATUS_ENUM_FOR_KIND: dict[ReportKind, type[Enum]] = {
    ReportKind.ISSUE: IssueStatus,
    ReportKind.BUILDING: BuildingStatus,
}


def enum_column(enum_cls: type[Enum], name: str) -> Column:
    return Column(
        sa.Enum(
            enum_cls,
            values_callable=lambda enum: [item.value for item in enum],
            name=name,
        ),
        nullable=False,
    )
