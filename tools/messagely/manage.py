#!/usr/bin/env python3
"""CLI management tool for messagely users and messages.

Provides commands to:
- Register users with bcrypt-hashed passwords
- Log in (authenticate and record the login timestamp)
- List users and show a single user
- Send messages, mark them read, and list a user's inbox or outbox
"""

import argparse
import asyncio
import getpass
import logging
import sqlite3
import sys

from .config import DEFAULT_CONFIG_PATH, load_config
from .db import Database
from .errors import AppError
from .events import log_event
from .stores import MessageStore, UserStore

logger = logging.getLogger("messagely.manage")


class Context:
    """Stores and settings shared by every command handler."""

    def __init__(self, config: dict) -> None:
        self.config = config
        self.db = Database(config["db_path"])
        self.users = UserStore(self.db, work_factor=config["bcrypt_work_factor"])
        self.messages = MessageStore(self.db)

    def event(self, event_type: str, **details) -> None:
        log_event(event_type, path=self.config["event_log"], component="manage", **details)

    def close(self) -> None:
        self.db.close()


def _password(args) -> str:
    if args.password:
        return args.password
    return getpass.getpass(f"Password for {args.username}: ")


def _fmt_ts(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


async def register(args, ctx: Context) -> int:
    """Register a new user with optional password prompt."""
    password = _password(args)
    if not password:
        print("Error: Password cannot be empty", file=sys.stderr)
        return 1

    try:
        user = await ctx.users.register(
            args.username, password, args.first_name, args.last_name, args.phone
        )
    except sqlite3.IntegrityError:
        print(f"Error: Username '{args.username}' already exists", file=sys.stderr)
        return 1

    ctx.event("user_registered", username=user["username"])
    print(f"✓ User registered: {user['username']}")
    return 0


async def login(args, ctx: Context) -> int:
    """Authenticate a user and record the login."""
    if not await ctx.users.authenticate(args.username, _password(args)):
        ctx.event("login_failed", username=args.username)
        print("Error: Invalid username/password", file=sys.stderr)
        return 1

    stamp = await ctx.users.update_login_timestamp(args.username)
    ctx.event("login_success", username=args.username)
    print(f"✓ Logged in {stamp['username']} at {_fmt_ts(stamp['last_login_at'])}")
    return 0


async def list_users(args, ctx: Context) -> int:
    """List all users."""
    users = await ctx.users.all()

    if not users:
        print("No users found")
        return 0

    print(f"{'Username':<20} {'Name':<30} {'Phone':<15}")
    print("-" * 65)
    for user in users:
        name = f"{user['first_name']} {user['last_name']}"
        print(f"{user['username']:<20} {name:<30} {user['phone']:<15}")

    return 0


async def show_user(args, ctx: Context) -> int:
    """Show one user's details."""
    user = await ctx.users.get(args.username)
    print(f"Username:   {user['username']}")
    print(f"Name:       {user['first_name']} {user['last_name']}")
    print(f"Phone:      {user['phone']}")
    print(f"Joined:     {_fmt_ts(user['join_at'])}")
    print(f"Last login: {_fmt_ts(user['last_login_at'])}")
    return 0


async def send(args, ctx: Context) -> int:
    """Send a message between two registered users."""
    try:
        msg = await ctx.messages.create(args.from_username, args.to_username, args.body)
    except sqlite3.IntegrityError:
        print(
            f"Error: Both '{args.from_username}' and '{args.to_username}' must be registered",
            file=sys.stderr,
        )
        return 1

    ctx.event("message_sent", message_id=msg["id"], from_username=msg["from_username"])
    print(f"✓ Message {msg['id']} sent to {msg['to_username']}")
    return 0


async def read_message(args, ctx: Context) -> int:
    """Show a message and mark it read."""
    msg = await ctx.messages.get(args.id)
    marked = await ctx.messages.mark_read(args.id)
    ctx.event("message_read", message_id=msg["id"])
    print(f"From: {msg['from_user']['username']}  To: {msg['to_user']['username']}")
    print(f"Sent: {_fmt_ts(msg['sent_at'])}  Read: {_fmt_ts(marked['read_at'])}")
    print(msg["body"])
    return 0


def _print_messages(messages: list, peer_key: str, label: str) -> None:
    print(f"{'ID':<6} {label:<20} {'Sent':<20} {'Read':<20} Body")
    print("-" * 90)
    for m in messages:
        print(
            f"{m['id']:<6} {m[peer_key]['username']:<20} {_fmt_ts(m['sent_at']):<20} "
            f"{_fmt_ts(m['read_at']):<20} {m['body'][:40]}"
        )


async def outbox(args, ctx: Context) -> int:
    """List messages sent by a user."""
    _print_messages(await ctx.users.messages_from(args.username), "to_user", "To")
    return 0


async def inbox(args, ctx: Context) -> int:
    """List messages received by a user."""
    _print_messages(await ctx.users.messages_to(args.username), "from_user", "From")
    return 0


COMMANDS = {
    "register": register,
    "login": login,
    "list-users": list_users,
    "show-user": show_user,
    "send": send,
    "read-message": read_message,
    "outbox": outbox,
    "inbox": inbox,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="messagely-manage",
        description="Manage messagely users and messages",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config.json (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--db-path", help="Path to SQLite database (overrides config)")
    parser.add_argument(
        "--log-level",
        "-l",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    reg_parser = subparsers.add_parser("register", help="Register a new user")
    reg_parser.add_argument("--username", required=True, help="Username")
    reg_parser.add_argument("--password", help="Password (prompted if omitted)")
    reg_parser.add_argument("--first-name", required=True, help="First name")
    reg_parser.add_argument("--last-name", required=True, help="Last name")
    reg_parser.add_argument("--phone", required=True, help="Phone number")

    login_parser = subparsers.add_parser("login", help="Authenticate a user")
    login_parser.add_argument("--username", required=True, help="Username")
    login_parser.add_argument("--password", help="Password (prompted if omitted)")

    subparsers.add_parser("list-users", help="List all users")

    show_parser = subparsers.add_parser("show-user", help="Show a user")
    show_parser.add_argument("--username", required=True, help="Username")

    send_parser = subparsers.add_parser("send", help="Send a message")
    send_parser.add_argument("--from", dest="from_username", required=True, help="Sender")
    send_parser.add_argument("--to", dest="to_username", required=True, help="Recipient")
    send_parser.add_argument("--body", required=True, help="Message text")

    read_parser = subparsers.add_parser("read-message", help="Show and mark a message read")
    read_parser.add_argument("--id", type=int, required=True, help="Message ID")

    outbox_parser = subparsers.add_parser("outbox", help="Messages sent by a user")
    outbox_parser.add_argument("--username", required=True, help="Username")

    inbox_parser = subparsers.add_parser("inbox", help="Messages received by a user")
    inbox_parser.add_argument("--username", required=True, help="Username")

    return parser


async def run(args, config: dict) -> int:
    """Dispatch to the command handler, mapping signalled errors to exit codes."""
    ctx = Context(config)
    try:
        return await COMMANDS[args.command](args, ctx)
    except AppError as e:
        logger.info(f"{args.command} failed with status {e.status}: {e.message}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        ctx.close()


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
    except AppError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    if args.db_path:
        config["db_path"] = args.db_path

    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
