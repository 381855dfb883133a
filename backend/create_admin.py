#!/usr/bin/env python3
"""
Script to create (or promote) a portal admin account.
Run this from the backend directory with the APP_* environment available.

Usage: python create_admin.py --name "NSS Admin" --email admin@example.com --phone 9876543210
"""
import argparse
import asyncio
import getpass

from sqlalchemy import select

from nss_portal.api.auth.schemas import SignupRequest
from nss_portal.api.users import service as user_service
from nss_portal.api.users.models import UserRoles, Users
from nss_portal.db.core import AsyncSessionLocal, engine


async def create_admin(name: str, email: str, phone: str, password: str):
    async with AsyncSessionLocal() as session:
        user = await session.scalar(select(Users).where(Users.email == email.lower()))
        if user:
            if user.role == UserRoles.admin:
                print(f"{email} is already an admin")
                return
            user.role = UserRoles.admin
            await session.commit()
            print(f"Promoted {email} to admin")
            return

        data = SignupRequest(name=name, email=email, phone=phone, password=password)
        user = await user_service.create_user(session, data, role=UserRoles.admin)
        print(f"Created admin {user.email} (ID: {user.id})")


async def main(name: str, email: str, phone: str, password: str):
    try:
        await create_admin(name, email, phone, password)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--phone", required=True)
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    asyncio.run(main(args.name, args.email, args.phone, password))
