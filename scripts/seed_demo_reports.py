from __future__ import annotations

import argparse

from sqlmodel import Session

from civicdesk.db.init_db import init_db
from civicdesk.db.session import engine
from civicdesk.models.enums import UserRole
from civicdesk.schemas.report import BuildingCreate, IssueCreate
from civicdesk.services.auth_service import create_user, get_user_by_email
from civicdesk.services.report_service import create_building, create_issue
from civicdesk.services.role_service import grant_role

DEMO_ISSUES = [
    IssueCreate(
        title='Pothole on Station Road',
        description='Deep pothole in the left lane near the bus stop.',
        category='roads',
        latitude=12.9718,
        longitude=77.5940,
    ),
    IssueCreate(
        title='Overflowing garbage bin',
        description='Bin at the market entrance has not been emptied for a week.',
        category='garbage',
    ),
    IssueCreate(
        title='Street light out',
        description='Two street lights are dark on 4th Cross.',
        category='lighting',
    ),
]

DEMO_BUILDINGS = [
    BuildingCreate(
        title='Old municipal library',
        description='Visible cracks on the facade after the last rains.',
        latitude=12.9721,
        longitude=77.5933,
    ),
]


def _ensure_user(session: Session, email: str, password: str, full_name: str):
    user = get_user_by_email(session, email)
    if user:
        return user, False
    return create_user(session, email, password, full_name), True


def main() -> None:
    parser = argparse.ArgumentParser(description='Seed an employee account and demo reports.')
    parser.add_argument('--employee-email', default='employee@example.com', help='Employee login email')
    parser.add_argument('--citizen-email', default='citizen@example.com', help='Citizen login email')
    parser.add_argument('--password', default='changeme123', help='Password for newly created accounts')
    parser.add_argument('--skip-reports', action='store_true', help='Only create the accounts')
    args = parser.parse_args()

    init_db()
    with Session(engine) as session:
        employee, employee_created = _ensure_user(session, args.employee_email, args.password, 'Demo Employee')
        grant_role(session, employee, UserRole.EMPLOYEE)
        citizen, citizen_created = _ensure_user(session, args.citizen_email, args.password, 'Demo Citizen')
        grant_role(session, citizen, UserRole.CITIZEN)

        issues = buildings = 0
        if not args.skip_reports:
            for payload in DEMO_ISSUES:
                create_issue(session, citizen.id, payload)
                issues += 1
            for payload in DEMO_BUILDINGS:
                create_building(session, citizen.id, payload)
                buildings += 1
    print(
        f"seeded: employee_created={employee_created} citizen_created={citizen_created} "
        f"issues={issues} buildings={buildings}"
    )


if __name__ == '__main__':
    main()
