import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .cleanup import cleanup_stale_matches
from .config import Settings
from .env import load_env
from .errors import CandidateStoreUnavailable, InvalidInput, ProfileNotFound
from .logger import get_logger
from .schema import validate_profile
from .service import build_service
from .storage import SQLProfileStore, load_profiles_file

EXIT_INVALID_INPUT = 2
EXIT_NOT_FOUND = 3
EXIT_STORE_UNAVAILABLE = 4


def parse_filters(values: Optional[List[str]]) -> Dict[str, str]:
    filters: Dict[str, str] = {}
    for item in values or []:
        if "=" not in item:
            raise InvalidInput(f"Filter must look like field=value, got {item!r}")
        key, value = item.split("=", 1)
        filters[key.strip()] = value.strip()
    return filters


def parse_id(value: str):
    value = value.strip()
    return int(value) if value.lstrip("-").isdigit() else value


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if getattr(args, "db", None):
        settings.db_path = Path(args.db)
    if getattr(args, "store", None):
        settings.store = args.store
    errors = settings.validate()
    if errors:
        raise SystemExit("Invalid configuration:\n" + "\n".join(f" - {e}" for e in errors))
    return settings


def cmd_import(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    settings = _settings(args)
    store = SQLProfileStore(settings.db_path, logger=get_logger())

    new = upd = same = skip = 0
    for record in load_profiles_file(input_path):
        errors = validate_profile(record) if isinstance(record, dict) else ["Record must be an object"]
        if errors:
            print(f"[validation_error] {record.get('id') if isinstance(record, dict) else record} - {errors}")
            skip += 1
            continue
        try:
            outcome = store.upsert_profile(record)
        except (ValueError, SQLAlchemyError) as e:
            print(f"[error] {record['id']} -> {e}")
            skip += 1
            continue
        s = outcome["status"]
        if s == "new":
            new += 1
        elif s == "updated":
            upd += 1
        else:
            same += 1
        print(f"[{s}] {record['id']}")
    print(f"Done. new={new} updated={upd} no-change={same} skipped={skip}")


def cmd_validate(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        record = json.load(f)
    errors = validate_profile(record)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(EXIT_INVALID_INPUT)
    print("Valid")


def cmd_rank(args: argparse.Namespace) -> None:
    settings = _settings(args)
    service = build_service(settings, logger=get_logger(), persist=args.persist or None)
    try:
        ranked = service.rank(parse_id(args.user_id), k=args.k, filters=parse_filters(args.filter))
    finally:
        service.close()
    print(json.dumps(ranked, indent=2, ensure_ascii=False))


def cmd_explain(args: argparse.Namespace) -> None:
    settings = _settings(args)
    service = build_service(settings, logger=get_logger(), persist=False)
    breakdown = service.explain(parse_id(args.user_id), parse_id(args.candidate_id))
    print(json.dumps(breakdown.to_dict(), indent=2))


def cmd_list(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if not settings.db_path.exists():
        print(f"Store not found: {settings.db_path}")
        return
    profiles = SQLProfileStore(settings.db_path, logger=get_logger()).list_profiles()
    if not profiles:
        print("No profiles in store.")
        return
    print(f"Found {len(profiles)} profiles in {settings.db_path}:\n")
    for p in profiles:
        print(f"ID: {p.id}{' (admin)' if p.is_admin else ''}")
        print(f"  Name: {p.name}")
        print(f"  Email: {p.email}")
        print(f"  Skills: {', '.join(sorted(p.skills))}")
        print(f"  Interests: {', '.join(sorted(p.interests))}")
        print(f"  Availability: {p.availability}")
        print(f"  University: {p.university}")
        print()


def cmd_cleanup(args: argparse.Namespace) -> None:
    settings = _settings(args)
    before, after = cleanup_stale_matches(settings.db_path, days=args.days)
    print(f"Removed {before - after} stale matches, {after} remaining.")


def main(argv: Optional[List[str]] = None) -> int:
    # Load .env if present (SUPABASE_URL, SUPABASE_KEY, FOUNDERMATCH_*)
    load_env()
    env_settings = Settings.from_env()
    get_logger(level=env_settings.log_level, log_dir=env_settings.log_dir)
    parser = argparse.ArgumentParser(prog="foundermatch", description="FounderMatch co-founder ranking CLI")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    imp = subparsers.add_parser("import", help="Validate and upsert profile records from a JSON file")
    imp.add_argument("--input", required=True, help="Path to JSON list of profiles")
    imp.add_argument("--db", help="Path to SQLite database (default: FOUNDERMATCH_DB_PATH or data/foundermatch.db)")
    imp.set_defaults(func=cmd_import)

    val = subparsers.add_parser("validate", help="Validate a single profile JSON record")
    val.add_argument("--input", required=True, help="Path to profile JSON input")
    val.set_defaults(func=cmd_validate)

    rnk = subparsers.add_parser("rank", help="Rank the best co-founder matches for a user")
    rnk.add_argument("--user-id", required=True, help="Subject profile id")
    rnk.add_argument("--k", type=int, help="Number of matches to return (default: FOUNDERMATCH_DEFAULT_K or 6)")
    rnk.add_argument("--filter", action="append", metavar="FIELD=VALUE", help="Narrow candidates before scoring, e.g. skill=python (repeatable)")
    rnk.add_argument("--store", choices=["sql", "rest"], help="Profile store backend")
    rnk.add_argument("--db", help="Path to SQLite database")
    rnk.add_argument("--persist", action="store_true", help="Write the ranking to the matches table")
    rnk.set_defaults(func=cmd_rank)

    exp = subparsers.add_parser("explain", help="Show the score breakdown for one user/candidate pair")
    exp.add_argument("--user-id", required=True, help="Subject profile id")
    exp.add_argument("--candidate-id", required=True, help="Candidate profile id")
    exp.add_argument("--store", choices=["sql", "rest"], help="Profile store backend")
    exp.add_argument("--db", help="Path to SQLite database")
    exp.set_defaults(func=cmd_explain)

    lst = subparsers.add_parser("list", help="List all stored profiles")
    lst.add_argument("--db", help="Path to SQLite database")
    lst.set_defaults(func=cmd_list)

    cln = subparsers.add_parser("cleanup", help="Delete persisted matches older than N days")
    cln.add_argument("--days", type=int, default=7, help="Keep matches newer than this many days (default: 7)")
    cln.add_argument("--db", help="Path to SQLite database")
    cln.set_defaults(func=cmd_cleanup)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        args.func(args)
    except InvalidInput as e:
        print(f"Invalid input: {e}")
        return EXIT_INVALID_INPUT
    except ProfileNotFound as e:
        print(str(e))
        return EXIT_NOT_FOUND
    except CandidateStoreUnavailable as e:
        print(f"Profile store unavailable: {e}")
        return EXIT_STORE_UNAVAILABLE
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
