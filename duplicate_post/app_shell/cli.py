import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from duplicate_post.adapters.sqlite.migrator import SQLiteMigrator
from duplicate_post.adapters.sqlite.repos import SQLiteContentStore, SQLiteUserRepo
from duplicate_post.api.auth_utils import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token
from duplicate_post.api.deps import Settings
from duplicate_post.components.duplicate import config_from_rules, run_duplicate
from duplicate_post.components.duplicate.models import DuplicateInput
from duplicate_post.domain.errors import ContentStoreError
from duplicate_post.domain.policy import PolicyEngine
from duplicate_post.rules.loader import load_rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(settings.db_path, settings.migrations_dir)

    if args.check:
        pending = migrator.pending_migrations()
        for filename in pending:
            print(f"Pending: {filename}")
        if pending:
            sys.exit(1)
        print("Database is up to date.")
        return

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s).")


def handle_create_user(settings: Settings, args: argparse.Namespace) -> None:
    repo = SQLiteUserRepo(settings.db_path)
    if repo.get_by_login(args.login):
        logger.error(f"User {args.login} already exists.")
        sys.exit(1)
    user = repo.create(args.login, roles=args.role or ["author"], display_name=args.display_name)
    print(f"Created user {user.id} ({user.login}) with roles {', '.join(user.roles)}.")


def handle_issue_token(settings: Settings, args: argparse.Namespace) -> None:
    user = SQLiteUserRepo(settings.db_path).get_by_id(args.user_id)
    if not user:
        logger.error(f"User {args.user_id} not found.")
        sys.exit(1)
    token = create_access_token(
        {"sub": str(user.id)},
        expires_delta=timedelta(minutes=args.minutes),
        secret_key=settings.secret_key,
    )
    print(token)


def handle_duplicate(settings: Settings, args: argparse.Namespace) -> None:
    rules = load_rules(settings.rules_path)
    actor = SQLiteUserRepo(settings.db_path).get_by_id(args.user)
    if not actor:
        logger.error(f"User {args.user} not found.")
        sys.exit(1)

    config = config_from_rules(rules)
    if not PolicyEngine(rules).user_can(actor, config.capability):
        logger.error("You do not have permission to duplicate posts.")
        sys.exit(1)

    store = SQLiteContentStore(settings.db_path, taxonomies=rules.taxonomies)
    try:
        source = store.get(args.post_id)
    except ContentStoreError as e:
        logger.error(f"Could not load post {args.post_id}: {e.message}")
        sys.exit(1)
    if not source:
        logger.error("Post not found.")
        sys.exit(1)

    result = run_duplicate(DuplicateInput(source=source, actor=actor), store=store, config=config)
    if not result.success:
        logger.error(result.errors[0].message)
        sys.exit(1)

    for skipped in result.skipped:
        logger.warning(f"Skipped {skipped.step}: {skipped.message}")
    print(f"Duplicated post {source.id} as {result.new_record_id}.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Duplicate Post CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--check", action="store_true", help="List pending migrations without applying them"
    )

    user_parser = subparsers.add_parser("create-user", help="Create a user")
    user_parser.add_argument("login")
    user_parser.add_argument(
        "--role", action="append", help="Role to assign (repeatable, default: author)"
    )
    user_parser.add_argument("--display-name", default="")

    token_parser = subparsers.add_parser("issue-token", help="Issue an access token")
    token_parser.add_argument("user_id", type=int)
    token_parser.add_argument("--minutes", type=int, default=ACCESS_TOKEN_EXPIRE_MINUTES)

    dup_parser = subparsers.add_parser("duplicate", help="Duplicate a post as a user")
    dup_parser.add_argument("post_id", type=int)
    dup_parser.add_argument("--user", type=int, required=True, help="Acting user id")

    args = parser.parse_args(argv)
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "create-user":
        handle_create_user(settings, args)
    elif args.command == "issue-token":
        handle_issue_token(settings, args)
    elif args.command == "duplicate":
        handle_duplicate(settings, args)


if __name__ == "__main__":
    main()
