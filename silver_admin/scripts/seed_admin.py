"""Seed the initial super-admin account.

Usage:
    SEED_ADMIN_EMAIL=... SEED_ADMIN_PASSWORD=... python -m silver_admin.scripts.seed_admin
    python -m silver_admin.scripts.seed_admin --email owner@example.com --name Owner

The password is read from SEED_ADMIN_PASSWORD or prompted for; it is never
accepted on the command line.
"""
import argparse
import asyncio
import getpass
import logging
import os
import sys

from silver_admin.core.database import Base, engine, get_db_session
from silver_admin.core.exceptions import AdminBackendError
from silver_admin.core.permissions import AdminRole
from silver_admin.services.admin_service import AdminService

logger = logging.getLogger(__name__)


async def seed_admin(name: str, email: str, password: str, create_tables: bool = False) -> int:
    try:
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        async with get_db_session() as db:
            service = AdminService(db)
            existing = await service.get_by_email(email)
            if existing:
                logger.info("Admin %s already exists (id=%s), nothing to do", existing.email, existing.id)
                return existing.id

            admin = await service.register(
                name=name,
                email=email,
                password=password,
                role=AdminRole.SUPER_ADMIN,
            )
            logger.info("Super admin created: id=%s email=%s", admin.id, admin.email)
            return admin.id
    finally:
        await engine.dispose()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the initial super-admin")
    parser.add_argument("--email", default=os.environ.get("SEED_ADMIN_EMAIL"))
    parser.add_argument("--name", default=os.environ.get("SEED_ADMIN_NAME", "Super Admin"))
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not args.email:
        parser.error("--email or SEED_ADMIN_EMAIL is required")

    password = os.environ.get("SEED_ADMIN_PASSWORD") or getpass.getpass("Password: ")

    try:
        asyncio.run(seed_admin(args.name, args.email, password, create_tables=args.create_tables))
    except AdminBackendError as e:
        logger.error("Could not seed admin: %s", e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
