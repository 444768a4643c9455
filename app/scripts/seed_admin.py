"""Seed script to create or update a platform admin.

Usage:
    python -m app.scripts.seed_admin --email=admin@example.com --password=SecurePass123! --organization="Acme Realty"

NEVER hardcode credentials in this file. Always pass via CLI arguments.
"""

import argparse
import asyncio
import sys
from sqlalchemy import select

from app.core.database import async_session
from app.models.organization import Organization
from app.models.role import Role
from app.models.user import User
from app.services.auth import hash_password


async def create_or_update_admin(email: str, password: str, organization_name: str) -> None:
    """Create a platform admin in ``organization_name``, or promote an existing profile."""
    async with async_session() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        admin_role = (await db.execute(
            select(Role).where(Role.name == "Admin", Role.organization_id.is_(None))
        )).scalar_one_or_none()

        if user:
            print(f"User {email} already exists. Promoting to platform admin...")
            user.is_platform_admin = True
            user.is_active = True
            user.hashed_password = hash_password(password)
            if admin_role:
                user.role_id = admin_role.id
            await db.commit()
            print(f"User {email} updated.")
            return

        result = await db.execute(select(Organization).where(Organization.name == organization_name))
        organization = result.scalar_one_or_none()
        if not organization:
            organization = Organization(name=organization_name)
            db.add(organization)
            await db.flush()
            print(f"Created organization: {organization.name}")

        db.add(User(
            email=email,
            hashed_password=hash_password(password),
            full_name="Platform Admin",
            organization_id=organization.id,
            role_id=admin_role.id if admin_role else None,
            is_platform_admin=True,
            is_active=True,
        ))
        await db.commit()
        print(f"Platform admin created: {email} in {organization.name}")


def main():
    """Parse CLI arguments and run the seed script."""
    parser = argparse.ArgumentParser(description="Create or update a platform admin for the CRM API")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--password", required=True, help="Admin password (will be hashed before storing)")
    parser.add_argument("--organization", default="Default Organization", help="Organization to create the admin in")

    args = parser.parse_args()

    if "@" not in args.email or "." not in args.email:
        print("Error: Invalid email format.", file=sys.stderr)
        sys.exit(1)

    if len(args.password) < 8:
        print("Error: Password must be at least 8 characters.", file=sys.stderr)
        sys.exit(1)

    asyncio.run(create_or_update_admin(args.email, args.password, args.organization))


if __name__ == "__main__":
    main()
