#!/usr/bin/env python
"""
Seed the permission catalog and system roles, optionally with a super admin.
"""

import argparse
import asyncio

from sqlalchemy import select

from backoffice.core.auth.backend import hash_password
from backoffice.core.database import async_engine, async_session_factory, init_db
from backoffice.core.permissions.seed import seed_catalog
from backoffice.modules.users.models import User, normalise_email


async def seed_super_admin(email: str, password: str, full_name: str) -> None:
    """Create a super admin account unless the email is already registered."""
    email = normalise_email(email)
    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"User already exists: {existing.email}")
            return

        session.add(
            User(
                email=email,
                password_hash=hash_password(password),
                full_name=full_name,
                is_active=True,
                is_super_admin=True,
            )
        )
        await session.commit()
        print(f"Created super admin: {email}")


async def main(args: argparse.Namespace) -> None:
    await init_db()

    async with async_session_factory() as session:
        created = await seed_catalog(session)
        await session.commit()
    print(f"Created {created['permissions']} permissions and {created['roles']} roles")

    if args.admin_email:
        if not args.admin_password:
            raise SystemExit("--admin-password is required with --admin-email")
        await seed_super_admin(args.admin_email, args.admin_password, args.admin_name)

    await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the permission catalog and system roles")
    parser.add_argument("--admin-email", help="Create a super admin with this email")
    parser.add_argument("--admin-password", help="Password for the super admin")
    parser.add_argument("--admin-name", default="Super Admin", help="Full name for the super admin")

    asyncio.run(main(parser.parse_args()))
