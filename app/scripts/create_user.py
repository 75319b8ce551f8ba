"""
Bootstrap a Sentinel account (e.g. the first system-admin). Run from project root:
  sentinel-create-user USERNAME PASSWORD FULLNAME [role] [--position TITLE]
or
  python -m app.scripts.create_user admin 'S3cure!pass' "Site Admin" system-admin

Creates the tables on a fresh database. Exit code 0 on success, 1 on rejection.
"""
import argparse
import logging
import sys
from datetime import UTC, datetime

from app.core.database import engine, session_scope
from app.core.password_policy import COMPLEXITY_MESSAGE, meets_complexity
from app.core.roles import ROLE_USER, ROLE_VALUES, STATUS_ACTIVE
from app.core.security import USERNAME_MAX_LEN, hash_password
from app.models import Base, User

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a Sentinel user (there is no self-registration).")
    parser.add_argument("username")
    parser.add_argument("password", help="Must meet the password complexity rules")
    parser.add_argument("fullname", help="Display name")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=sorted(ROLE_VALUES))
    parser.add_argument("--position", default=None, help="Job title")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not meets_complexity(args.password):
        print(COMPLEXITY_MESSAGE, file=sys.stderr)
        return 1

    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        if db.query(User).filter(User.username == username).first() is not None:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        user = User(
            username=username,
            fullname=args.fullname.strip(),
            position=args.position.strip() if args.position else None,
            password_hash=hash_password(args.password),
            password_changed_at=datetime.now(UTC),
            role=args.role,
            status=STATUS_ACTIVE,
        )
        db.add(user)
        db.flush()
        logger.info("Created user", extra={"user_id": user.id, "role": args.role})
    print(f"Created user '{username}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
