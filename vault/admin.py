# vault/admin.py

"""
Operator commands against the key store.

    theta-vault-admin show USER_ID [--phrase]
    theta-vault-admin create USER_ID

``--phrase`` prints the 24-word recovery phrase of the user's key. It is the
only way key material leaves the vault; run it on a trusted terminal.
"""

import argparse
import asyncio
import os
import sys

from .crypto.keys import recovery_phrase
from .keymanager import SqlKeyManager
from .logging_config import setup_logging
from .models import create_engine_and_session, init_db


def _print_record(record, phrase=False):
    print(f"user_id:  {record.user_id}")
    print(f"address:  {record.address}")
    print(f"pub_key:  {record.pub_key.data.hex()}")
    print(f"type:     {record.type}")
    if phrase:
        print(f"phrase:   {recovery_phrase(record.priv_key)}")


async def run(args) -> int:
    engine, session_factory = create_engine_and_session(args.database_url)
    await init_db(engine)
    key_manager = SqlKeyManager(session_factory, engine=engine)
    try:
        if args.command == "show":
            record = await key_manager.find_by_user_id(args.user_id)
            if record is None:
                print(f"No record for user ID: {args.user_id}", file=sys.stderr)
                return 1
            _print_record(record, phrase=args.phrase)
        elif args.command == "create":
            record = await key_manager.get_or_create(args.user_id)
            _print_record(record)
        return 0
    finally:
        await key_manager.close()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Theta key vault admin")
    parser.add_argument('--database_url', type=str, default=os.getenv("DATABASE_URL"),
                        help="SQLAlchemy URL of the key store")
    parser.add_argument('--log_level', type=str, default="WARNING", help="Log level")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print a user's address and public key")
    show.add_argument("user_id")
    show.add_argument('--phrase', action='store_true', help="Also print the recovery phrase")

    create = sub.add_parser("create", help="Create a user's keypair if it does not exist")
    create.add_argument("user_id")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
