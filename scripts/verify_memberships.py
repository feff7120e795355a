"""Print a user's business memberships.

Usage:
    python -m scripts.verify_memberships --email owner@example.com

Only the database host is printed, never the full connection URL.
"""

import argparse
import sys
from urllib.parse import urlsplit

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.db.engine import create_engine_from_settings, create_session_factory
from backend.app.db.models import PrincipalRow
from backend.app.db.queries import MEMBERSHIP_QUERIES, JoinModel, to_membership_record
from backend.app.db.repositories import MembershipRecord


def database_host(database_url: str) -> str:
    """Host (and port) of a connection URL, without credentials or path."""
    parts = urlsplit(database_url)
    if parts.hostname is None:
        return f"{parts.scheme or 'unknown'} (local)"
    if parts.port:
        return f"{parts.hostname}:{parts.port}"
    return parts.hostname


def find_memberships(
    session: Session, email: str, join_model: JoinModel = JoinModel.business_user
) -> list[MembershipRecord] | None:
    """All memberships (any status) for the principal with ``email``.

    Returns:
        Memberships oldest first, or None if no principal has that email
    """
    principal = session.execute(
        select(PrincipalRow).where(PrincipalRow.email == email)
    ).scalar_one_or_none()
    if principal is None:
        return None

    query = MEMBERSHIP_QUERIES[join_model]
    rows = session.execute(query(principal.user_id)).all()
    return [to_membership_record(membership, name) for membership, name in rows]


def format_membership(record: MembershipRecord) -> str:
    name = record.business_name or "(unnamed)"
    return (
        f"  {record.business_id}  {name}  role={record.role.value}  "
        f"status={record.status.value}  created={record.created_at.isoformat()}"
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", required=True, help="Principal email to look up")
    parser.add_argument(
        "--join-model",
        choices=[m.value for m in JoinModel],
        default=JoinModel.business_user.value,
        help="Membership join table",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    print(f"Database host: {database_host(settings.database_url or settings.postgres_url)}")

    engine = create_engine_from_settings(settings)
    try:
        with create_session_factory(engine)() as session:
            records = find_memberships(session, args.email.strip(), JoinModel(args.join_model))
    finally:
        engine.dispose()

    if records is None:
        print(f"No principal found with email {args.email}")
        return 1

    print(f"{len(records)} membership(s) for {args.email}:")
    for record in records:
        print(format_membership(record))
    return 0


if __name__ == "__main__":
    sys.exit(main())
