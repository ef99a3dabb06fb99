# ============================================================================
# Create Admin User
# ============================================================================
"""
Script to create an admin user.

Usage:
    python scripts/create_admin.py --email admin@example.com --username admin --password SecurePass123 [--super]
"""

import asyncio
import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from ebedmas.core.database import async_session_maker
from ebedmas.core.security import get_password_hash
from ebedmas.models.user import User, UserRole

async def create_admin(email: str, username: str, password: str, super_admin: bool = False):
    """Create an admin user, or promote an existing one"""
    role = UserRole.SUPER_ADMIN if super_admin else UserRole.ADMIN

    async with async_session_maker() as db:
        result = await db.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"User {email} already exists")
            existing.role = role
            existing.password_hash = get_password_hash(password)
            await db.commit()
            print(f"Updated existing user to {role.value}")
        else:
            user = User(
                email=email,
                username=username,
                password_hash=get_password_hash(password),
                role=role,
                is_active=True
            )
            db.add(user)
            await db.commit()
            print(f"Created {role.value} user: {email}")

def main():
    parser = argparse.ArgumentParser(description="Create admin user")
    parser.add_argument("--email", required=True, help="Email address")
    parser.add_argument("--username", required=True, help="Display name")
    parser.add_argument("--password", required=True, help="Password")
    parser.add_argument("--super", dest="super_admin", action="store_true", help="Create a super admin")

    args = parser.parse_args()
    asyncio.run(create_admin(args.email, args.username, args.password, args.super_admin))

if __name__ == "__main__":
    main()
