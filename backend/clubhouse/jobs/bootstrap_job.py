"""
Bootstrap job: prepare a fresh database for the clubhouse backend.

Creates any missing tables, seeds the default club settings and creates
the first administrator from INITIAL_ADMIN_EMAIL / INITIAL_ADMIN_PASSWORD.
Safe to run on every deploy; existing tables, settings and accounts are
left as they are.

Run once before starting the API:
    python -m clubhouse.jobs.bootstrap_job
    python -m clubhouse.jobs.bootstrap_job --admin-email owner@club.test --admin-name "Club Owner"
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from clubhouse.config import settings
from clubhouse.database.session import SessionLocal, init_db
from clubhouse.platform.auth_context import ActorContext
from clubhouse.services.settings_service import SettingsService
from clubhouse.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    settings_added: int = 0
    admin_email: Optional[str] = None
    admin_created: bool = False

    def to_dict(self) -> dict:
        return {
            "settings_added": self.settings_added,
            "admin_email": self.admin_email,
            "admin_created": self.admin_created,
        }

    def summary(self) -> str:
        lines = [f"Seeded {self.settings_added} default settings."]
        if self.admin_email is None:
            lines.append("No initial admin configured.")
        elif self.admin_created:
            lines.append(f"Created admin {self.admin_email}.")
        else:
            lines.append(f"Admin {self.admin_email} already exists.")
        return "\n".join(lines)


def run_bootstrap(
    db_session,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
    admin_name: Optional[str] = None,
) -> BootstrapResult:
    """Seed settings and the initial admin, then commit."""
    result = BootstrapResult()
    result.settings_added = SettingsService(db_session).seed_defaults()

    if admin_email:
        user, created = UserService(db_session).ensure_admin(
            admin_email, admin_password or "", admin_name or "", ActorContext.system()
        )
        result.admin_email = user.email
        result.admin_created = created
    else:
        logger.warning("INITIAL_ADMIN_EMAIL is not set; no administrator was created")

    db_session.commit()
    logger.info("Bootstrap completed", extra=result.to_dict())
    return result


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create tables, default settings and the first administrator"
    )
    parser.add_argument(
        "--admin-email",
        default=settings.INITIAL_ADMIN_EMAIL,
        help="Email of the first administrator (default: INITIAL_ADMIN_EMAIL)",
    )
    parser.add_argument(
        "--admin-name",
        default=settings.INITIAL_ADMIN_NAME,
        help="Display name of the first administrator (default: INITIAL_ADMIN_NAME)",
    )
    parser.add_argument(
        "--skip-create-tables",
        action="store_true",
        help="Assume the schema already exists",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the bootstrap job."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = _parse_args(argv)

    session = SessionLocal()
    try:
        if not args.skip_create_tables:
            init_db(session.get_bind())
        result = run_bootstrap(
            session,
            admin_email=args.admin_email,
            admin_password=settings.INITIAL_ADMIN_PASSWORD,
            admin_name=args.admin_name,
        )
    except Exception as exc:
        session.rollback()
        logger.error(
            "Bootstrap job failed",
            extra={"error": str(exc)},
            exc_info=True,
        )
        return 1
    finally:
        session.close()

    print(result.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
