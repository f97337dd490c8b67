#!/usr/bin/env python3
"""
Token Issuing Script

Prints a bearer token for a subject, signed with the configured
SECRET_KEY. Development aid only; there is no login endpoint.

USAGE:
    python scripts/issue_token.py 1 alice
    python scripts/issue_token.py 0 admin --ttl 3600

    curl -H "Authorization: Bearer $(python scripts/issue_token.py 1 alice)" \
        -X POST localhost:8080/api/v1/examples -d '{"title": "Hello"}'
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from skeleton_api.config import get_settings
from skeleton_api.services.security import TokenService


def issue_token(subject_id: int, subject_name: str, ttl: int | None = None) -> str:
    """Sign a token the running service will accept."""
    settings = get_settings()
    tokens = TokenService(
        settings.secret_key,
        issuer=settings.jwt_issuer,
        expire_seconds=settings.jwt_expire_seconds,
    )
    return tokens.issue(
        subject_id,
        subject_name,
        ttl=timedelta(seconds=ttl) if ttl else None,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print a bearer token for a subject.")
    parser.add_argument("subject_id", type=int, help="numeric subject id")
    parser.add_argument("subject_name", help="subject name (the ownership identity)")
    parser.add_argument("--ttl", type=int, default=None, help="lifetime in seconds")
    args = parser.parse_args()

    print(issue_token(args.subject_id, args.subject_name, args.ttl))
