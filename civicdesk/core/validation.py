import re
from typing import Union

from civicdesk.models.enums import STATUS_ENUM_FOR_KIND, ReportKind

UUID_RE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)


class InvalidReportId(ValueError):
    pass


class InvalidReportStatus(ValueError):
    pass


def parse_issue_id(raw: Union[int, str]) -> int:
    if isinstance(raw, bool):
        raise InvalidReportId(f"Invalid issue id: {raw}. Must be a positive number.")
    try:
        issue_id = int(str(raw).strip())
    except ValueError as exc:
        raise InvalidReportId(f"Invalid issue id: {raw}. Must be a positive number.") from exc
    if issue_id <= 0:
        raise InvalidReportId(f"Invalid issue id: {raw}. Must be a positive number.")
    return issue_id


def parse_building_id(raw: Union[int, str]) -> str:
    value = str(raw).strip()
    if not UUID_RE.match(value):
        raise InvalidReportId(f"Invalid building id: {raw}. Must be a UUID.")
    return value.lower()


def parse_report_id(kind: ReportKind, raw: Union[int, str]) -> Union[int, str]:
    if kind == ReportKind.ISSUE:
        return parse_issue_id(raw)
    return parse_building_id(raw)


def validate_status(kind: ReportKind, raw: str) -> str:
    allowed = [item.value for item in STATUS_ENUM_FOR_KIND[kind]]
    if raw not in allowed:
        raise InvalidReportStatus(f"Invalid {kind.value} status: {raw}. Must be one of: {', '.join(allowed)}")
    return raw
