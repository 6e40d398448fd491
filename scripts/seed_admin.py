import argparse
from pathlib import Path
import sys

from sqlalchemy import select

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.claims import Role
from app.core.config import get_settings
from app.core.security import hash_password
from app.db.session import get_session_factory
from app.models.user import User


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create or update a super admin account.")
    parser.add_argument("--email", default=settings.bootstrap_admin_email)
    parser.add_argument("--password", default=settings.bootstrap_admin_password)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    email = args.email.strip().lower()
    session_factory = get_session_factory()
    with session_factory() as db:
        existing = db.scalar(select(User).where(User.email == email))
        if existing:
            existing.password_hash = hash_password(args.password)
            existing.role = Role.SUPER_ADMIN.value
            action = "updated"
        else:
            db.add(
                User(
                    email=email,
                    password_hash=hash_password(args.password),
                    role=Role.SUPER_ADMIN.value,
                )
            )
            action = "created"
        db.commit()
    print(f"Super admin {email} {action}.")


if __name__ == "__main__":
    main()
