#!/usr/bin/env python3
"""Provision a SuperAdmin account.

SuperAdmins cannot register through the API; run this once per operator:

    python scripts/create_superadmin.py --email root@example.com --password 's3cret!'
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backoffice.core.errors import BackofficeError
from backoffice.core.logging import setup_logging
from backoffice.domain.services.auth_service import AuthService
from backoffice.infrastructure.db.session import dispose_engine, get_session_factory


async def create(email: str, password: str) -> str:
    try:
        async with get_session_factory()() as session:
            account = await AuthService(session).create_superadmin(email=email, password=password)
            return account.id
    finally:
        await dispose_engine()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()

    setup_logging()
    try:
        account_id = asyncio.run(create(args.email, args.password))
    except BackofficeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"SuperAdmin created: {account_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
