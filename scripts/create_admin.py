#!/usr/bin/env python3
"""
Bootstrap the credential store

This script:
1. Runs the principals migration (optional)
2. Creates the initial ADMIN principal

The admin password is read from ADMIN_PASSWORD or prompted for.
"""

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from petwell.auth.errors import EntityAlreadyExistsError
from petwell.auth.jwt_handler import JWTHandler
from petwell.auth.models import EmployeeCreate, JobTitle, Role
from petwell.auth.repository import PostgresPrincipalRepository
from petwell.auth.revocation import RevocationCache
from petwell.auth.service import AuthService
from petwell.core.cache import MemoryCacheBackend
from petwell.core.config import get_settings
from petwell.core.database import close_db_pool, init_db_pool
from petwell.core.logging import get_logger, setup_logging

logger = get_logger(__name__)

MIGRATION_FILE = Path(__file__).parent.parent / "migrations" / "001_principals.sql"


async def run_migration(pool) -> None:
    """Apply the principals schema"""
    logger.info("Running migration", file=str(MIGRATION_FILE))
    async with pool.acquire() as conn:
        await conn.execute(MIGRATION_FILE.read_text())
    logger.info("Migration completed")


def build_admin_request(args: argparse.Namespace, password: str) -> Optional[EmployeeCreate]:
    """Validate the admin details, logging each problem instead of raising"""
    try:
        return EmployeeCreate(
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email,
            password=password,
            role=Role.ADMIN,
            job_title=JobTitle.MANAGER,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            logger.error("Invalid admin details", field=field, error=error["msg"])
        return None


async def create_admin(args: argparse.Namespace) -> int:
    settings = get_settings()
    if settings.database_url is None:
        logger.error("DATABASE_URL is not configured")
        return 1

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    request = build_admin_request(args, password)
    if request is None:
        return 1

    pool = await init_db_pool(str(settings.database_url), max_size=2)
    try:
        if args.migrate:
            await run_migration(pool)

        auth_service = AuthService(
            repository=PostgresPrincipalRepository(pool),
            jwt_handler=JWTHandler(
                secret_key=settings.secret_key,
                algorithm=settings.jwt_algorithm,
                access_token_expire_minutes=settings.access_token_expire_minutes,
            ),
            revocation_cache=RevocationCache(MemoryCacheBackend(), settings.effective_revocation_ttl),
        )

        try:
            admin = await auth_service.create_employee(request)
        except EntityAlreadyExistsError:
            logger.info("Admin already exists", email=args.email)
            return 0

        logger.info("Admin created", principal_id=str(admin.id), email=admin.email)
        return 0
    finally:
        await close_db_pool()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the initial PetWell administrator")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@petwell.com"))
    parser.add_argument("--first-name", default="Clinic")
    parser.add_argument("--last-name", default="Administrator")
    parser.add_argument("--migrate", action="store_true", help="Apply migrations/001_principals.sql first")
    return parser.parse_args(argv)


def main() -> int:
    settings = get_settings()
    setup_logging(settings.log_level, "console")
    return asyncio.run(create_admin(parse_args()))


if __name__ == "__main__":
    sys.exit(main())
