#!/usr/bin/env python3
"""
Grant admin privileges to an account and print a token carrying the claim.

Tokens minted before this runs do not carry the claim; the user has to use
the new token (or sign in again) for the change to take effect. Pass
--password to set the account's sign-in password at the same time.

Usage:
    python3 scripts/set_admin_user.py your-email@example.com [--password SECRET]
"""

import argparse
import asyncio
import sys
from typing import Optional

from portfolio.auth import JWTIdentityProvider
from portfolio.config import Settings, configure_logging
from portfolio.database import MongoStore
from portfolio.errors import PortfolioError


async def set_admin_claim(email: str, settings: Settings, password: Optional[str] = None) -> int:
    store = MongoStore.from_url(settings.mongo_url, settings.db_name)
    provider = JWTIdentityProvider(
        settings.jwt_secret, settings.jwt_algorithm, settings.token_expire_minutes, registry=store
    )
    try:
        await provider.set_custom_claims(email, {"admin": True})
        if password:
            await provider.set_password(email, password)
        token = await provider.issue_token(email)
    except PortfolioError as e:
        print(f"Error setting admin claim: {e}", file=sys.stderr)
        return 1
    finally:
        await store.close()

    print(f"Admin claim set successfully for {email}")
    if password:
        print("Password updated; sign in with POST /api/auth/login")
    print(f"Token:\n{token}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Grant the admin claim to an account")
    parser.add_argument("email", help="Account email address")
    parser.add_argument("--password", help="Set the account's sign-in password")
    args = parser.parse_args()

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    sys.exit(asyncio.run(set_admin_claim(args.email, settings, args.password)))


if __name__ == "__main__":
    main()
