import argparse

from .identity import get_password_hash
from .logger import logger


def hash_password(password: str) -> str:
    if not password:
        logger.error("Refusing to hash an empty password")
        raise ValueError("Password must not be empty")
    return get_password_hash(password)


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(prog="python -m filebox.commands")
    subparsers = parser.add_subparsers(dest="command")

    # Hash a password for an [[accounts]] entry in config.toml
    hash_parser = subparsers.add_parser("hash-password")
    hash_parser.add_argument("--password", type=str, required=True)

    args = parser.parse_args(argv)

    if args.command == "hash-password":
        print(hash_password(args.password))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
