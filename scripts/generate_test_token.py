#!/usr/bin/env python3
"""Generate JWT tokens for local API testing."""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from growth_tracker.core.auth import MEMBER_ROLE, create_access_token
from growth_tracker.core.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", nargs="?", default="member-test")
    parser.add_argument("--role", choices=get_settings().allowed_roles, default=MEMBER_ROLE)
    parser.add_argument("--email", default=None)
    args = parser.parse_args()

    token = create_access_token(args.user_id, roles=[args.role], email=args.email)
    print(f"{args.role.title()} Token for {args.user_id}:\n{token}")


if __name__ == "__main__":
    main()
