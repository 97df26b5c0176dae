"""Status normalization for rows read from the report tables.

Stored status strings may predate the current enumerations (``reported``,
``in-progress``, ``Under Inspection`` ...). Every row is mapped onto the
enumeration exactly once, right after it is fetched; unknown values fall back
to ``pending``.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE, BuildingStatus, IssueStatus

ISSUE_ALIASES: dict[str, IssueStatus] = {
    'reported': IssueStatus.PENDING,
    'approved': IssueStatus.PENDING_APPROVED,
    'in_progress': IssueStatus.UNDER_MAINTENANCE,
}

BUILDING_ALIASES: dict[str, BuildingStatus] = {
    'under_inspection': BuildingStatus.UNDER_MAINTENANCE,
    'in_progress': BuildingStatus.UNDER_MAINTENANCE,
}


def _canonical(raw: Any) -> str:
    if not isinstance(raw, str):
        return ''
    return raw.strip().lower().replace('-', '_').replace(' ', '_')


def normalize_issue_status(raw: Optional[str]) -> str:
    key = _canonical(raw)
    if key in ISSUE_ALIASES:
        return ISSUE_ALIASES[key].value
    try:
        return IssueStatus(key).value
    except ValueError:
        return IssueStatus.PENDING.value


def normalize_building_status(raw: Optional[str]) -> str:
    key = _canonical(raw)
    if key in BUILDING_ALIASES:
        return BUILDING_ALIASES[key].value
    try:
        return BuildingStatus(key).value
    except ValueError:
        return BuildingStatus.PENDING.value


STATUS_NORMALIZERS: dict[str, Callable[[Optional[str]], str]] = {
    ISSUES_TABLE: normalize_issue_status,
    BUILDINGS_TABLE: normalize_building_status,
}


def normalize_row(row: dict, table: str) -> dict:
    """Return a copy of ``row`` with its status mapped onto the table's enumeration."""
    normalized = dict(row)
    normalized['status'] = STATUS_NORMALIZERS[table](row.get('status'))
    if table == BUILDINGS_TABLE:
        normalized['building_name'] = row.get('building_name') or row.get('title') or 'Unknown Building'
    return normalized
