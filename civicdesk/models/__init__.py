from civicdesk.models.base import IDModel, ReportFields, TimestampModel
from civicdesk.models.user import User
from civicdesk.models.user_role import UserRoleGrant
from civicdesk.models.refresh_token import RefreshToken
from civicdesk.models.issue import Issue
from civicdesk.models.building import BuildingAtRisk

__all__ = [
    'IDModel',
    'ReportFields',
    'TimestampModel',
    'User',
    'UserRoleGrant',
    'RefreshToken',
    'Issue',
    'BuildingAtRisk',
]
