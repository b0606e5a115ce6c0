#!/usr/bin/env python3

import sys
import json
import getpass
import argparse
import logging
from typing import List, Optional
from collections import OrderedDict

import uvicorn
import sqlalchemy.exc

from bookshelf_core import settings as _settings
from bookshelf_core.api import auth
from bookshelf_core.api.api import create_app
from bookshelf_core.misc.logger import configure_logging
from bookshelf_core.persistence import database, models
from bookshelf_core.persistence.repository import AuthorRepository, BookRepository


def get_parser(program: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=program)

    commands = parser.add_subparsers(
        description="Available sub-commands: init, users*, run",
        dest="command",
        required=True,
        metavar="<command>",
        help="the sub-command to be executed (some have their own subcommands, too)"
    )

    parser_init = commands.add_parser(
        "init",
        description="Initialize the project by creating the config file and the database tables"
    )

    parser_users = commands.add_parser(
        "users",
        description="Manage API accounts"
    )
    user_command = parser_users.add_subparsers(
        description="Available actions: show, add, del",
        dest="action",
        metavar="<action>",
        required=True,
        help="action to perform for users"
    )
    parser_users_show = user_command.add_parser(
        "show",
        description="Show a list of all API accounts"
    )
    parser_users_add = user_command.add_parser(
        "add",
        description="Add a new API account with a password for the login & authentication process"
    )
    parser_users_del = user_command.add_parser(
        "del",
        description="Delete an existing API account to block further API access"
    )

    parser_run = commands.add_parser(
        "run",
        description="Run 'uvicorn' ASGI server to serve the Bookshelf core REST API"
    )

    parser_init.add_argument(
        "--database",
        type=str,
        metavar="url",
        help="Database connection URL including scheme and auth"
    )

    parser_users_show.add_argument(
        "--json",
        action="store_true",
        help="Print the result in JSON format instead of human-readable text"
    )
    parser_users_show.add_argument(
        "--indent",
        type=int,
        metavar="n",
        help="(JSON-only) Indent the JSON response with n spaces (default: none)"
    )

    parser_users_add.add_argument(
        "--username",
        type=str,
        metavar="name",
        required=True,
        help="Name of the newly created account"
    )
    parser_users_add.add_argument(
        "--password",
        type=str,
        metavar="passwd",
        help="Password for the new account (will be asked interactively if omitted)"
    )
    parser_users_add.add_argument(
        "--admin",
        action="store_true",
        help="Grant the admin role, which is required to create, update and delete resources"
    )

    parser_users_del.add_argument(
        "user",
        metavar="name/ID",
        help="name or ID of the account that should be deleted"
    )

    parser_run.add_argument(
        "--host",
        type=str,
        metavar="host",
        help="Bind TCP socket to this host (overwrite config)"
    )
    parser_run.add_argument(
        "--port",
        type=int,
        metavar="port",
        help="Bind TCP socket to this port (overwrite config)"
    )
    parser_run.add_argument(
        "--config",
        type=str,
        metavar="config",
        default="config.json",
        help="Overwrite the config file (defaults to 'config.json')"
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable full debug mode including tracebacks via HTTP (probably insecure)"
    )
    parser_run.add_argument(
        "--debug-sql",
        action="store_true",
        help="Enable echoing of database actions (overwrites config)"
    )
    parser_run.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload"
    )
    parser_run.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="n",
        help="Number of worker processes (not valid with --reload)",
    )
    parser_run.add_argument(
        "--no-access-log",
        action="store_true",
        help="Disable access logs"
    )
    parser_run.add_argument(
        "--root-path",
        type=str,
        default="",
        metavar="p",
        help="Sub-mount the application below the given path"
    )

    return parser


def run_server(args: argparse.Namespace) -> int:
    if args.debug:
        print("Do not start the server this way during production!", file=sys.stderr)

    settings = _settings.load_settings(args.config)

    logging_config = configure_logging(settings.logging, args.debug)
    if args.debug_sql:
        settings.database.debug_sql = args.debug_sql

    port = args.port
    if port is None:
        port = settings.server.port
    host = args.host
    if host is None:
        host = settings.server.host

    app = create_app(settings=settings, configure_logging=False)

    logging.getLogger("bookshelf_core").info(f"Server running at host {host} port {port}")
    uvicorn.run(
        "bookshelf_core.api:api.app" if args.reload else app,
        port=port,
        host=host,
        reload=args.reload,
        workers=args.workers,
        log_level="debug" if args.debug else "info",
        log_config=logging_config.model_dump(),
        access_log=not args.no_access_log,
        proxy_headers=True,
        root_path=args.root_path
    )
    return 0


def _setup_database() -> _settings.Settings:
    settings = _settings.load_settings()
    database.init(settings.database.connection, settings.database.debug_sql)
    auth.configure_password_check(settings.server.allow_weak_insecure_password_hashes)
    return settings


def init_project(args: argparse.Namespace) -> int:
    if args.database:
        conf = _settings.config.CoreConfig(**_settings.read_settings_from_file())
        conf.database.connection = args.database
        _settings.store_configuration(conf)
        print(f"The database connection {args.database!r} has been written to the config file.")

    _setup_database()
    session = database.get_new_session()

    try:
        users = session.query(models.User).count()
        authors = AuthorRepository(session).count()
        books = BookRepository(session).count()
    except sqlalchemy.exc.DatabaseError:
        print("The database tables couldn't be created. Check the database connection.", file=sys.stderr)
        return 1
    finally:
        session.close()

    print(f"The database contains {authors} author(s), {books} book(s) and {users} account(s).")
    if users == 0:
        print(
            "\nThere's no registered account yet. Nobody can modify any resources "
            "without an admin account. Re-run this utility with the 'users add' "
            "command and the '--admin' switch to add such an account."
        )
    print("Done.")
    return 0


def print_table(objs: List[dict], keys: Optional[List[str]] = None):
    info = OrderedDict()
    if keys:
        for k in keys:
            info[k] = len(k)
    for obj in objs:
        for key in obj:
            if keys and key not in keys:
                continue
            if key not in info:
                info[key] = len(key)
            info[key] = max(len(str(obj.get(key))), info.get(key))
    print(" | ".join([f"{k:<{info[k]}}" for k in info]))
    print("-+-".join(["-" * info[k] for k in info]))
    for obj in objs:
        print(" | ".join([f"{obj[k]!s:<{info[k]}}" for k in info]))


def show_users(args: argparse.Namespace) -> int:
    _setup_database()
    with database.get_new_session() as session:
        users = [user.schema.model_dump() for user in session.query(models.User).all()]

    if args.json:
        print(json.dumps(users, indent=args.indent))
        return 0
    for user in users:
        user["roles"] = ", ".join(user["roles"])
    print_table(users, ["id", "username", "roles", "created"])
    return 0


def add_user(args: argparse.Namespace) -> int:
    if not args.username:
        print("Empty usernames are not allowed.", file=sys.stderr)
        return 1

    _setup_database()
    with database.get_new_session() as session:
        if session.query(models.User).filter_by(username=args.username).all():
            print(
                f"An account with the given name {args.username!r} already "
                f"exists. Therefore, it can't be created. Exiting.",
                file=sys.stderr
            )
            return 1

    passwd = args.password or getpass.getpass()
    if not passwd:
        print("A password is mandatory. No new account created!", file=sys.stderr)
        return 1

    roles = [auth.USER_ROLE, auth.ADMIN_ROLE] if args.admin else [auth.USER_ROLE]
    user = auth.create_user(args.username, passwd, roles)
    print(f"Successfully created new account {user.username!r} with roles {', '.join(user.roles)}.")
    return 0


def del_user(args: argparse.Namespace) -> int:
    _setup_database()
    with database.get_new_session() as session:
        try:
            user = session.get(models.User, int(args.user))
            if user is None:
                print(f"There's no account with the ID {args.user} in the database!", file=sys.stderr)
                return 1
        except ValueError:
            user = session.query(models.User).filter_by(username=args.user).first()
            if user is None:
                print(f"There's no account with name {args.user!r} in the database!", file=sys.stderr)
                return 1

        session.delete(user)
        session.commit()
        print(
            f"Successfully deleted account named {user.username!r} (ID {user.id}). "
            f"Tokens issued for this account are rejected from now on."
        )
    return 0


def handle_users(args: argparse.Namespace) -> int:
    return {
        "show": show_users,
        "add": add_user,
        "del": del_user
    }[args.action](args)


def main(program: str = "bookshelf_core", argv: Optional[List[str]] = None) -> int:
    ns = get_parser(program).parse_args(argv)
    return {
        "init": init_project,
        "users": handle_users,
        "run": run_server
    }[ns.command](ns)


if __name__ == "__main__":
    sys.exit(main(sys.argv[0]))
