import argparse
import json
import os
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .database import init_database, get_session, fetch_match_inputs, save_profile
from .env import load_env, store_path, db_path, candidate_limit
from .logger import get_logger
from .matcher import top_matches
from .profile import MatchResult, UserProfile, skill_preview
from .retry import RetryError
from .schema import validate_profile, validate_profile_strict
from .storage import load_store, save_store, upsert_profile, list_profiles

logger = get_logger()


def load_from_store(
    path: Path, user_id: str, limit: Optional[int]
) -> Tuple[Optional[UserProfile], List[UserProfile]]:
    """Subject and candidate pool from the JSON store, bounded like the database query."""
    logger.record_fetch_attempt("json")
    store = load_store(path)
    profiles = list_profiles(store)
    logger.record_fetch_success("json")
    logger.record_candidates_skipped(len(store["users"]) - len(profiles))
    subject = next((p for p in profiles if p.id == user_id), None)
    if subject is None:
        return None, []
    candidates = [p for p in profiles if p.id != user_id]
    if limit is not None:
        candidates = candidates[:limit]
    return subject, candidates


def load_from_db(
    path: Path, user_id: str, limit: Optional[int]
) -> Tuple[Optional[UserProfile], List[UserProfile]]:
    if not path.exists():
        raise SystemExit(f"Database not found: {path}")
    logger.record_fetch_attempt("sqlite")
    try:
        result = fetch_match_inputs(path, user_id, limit=limit)
    except (RetryError, SQLAlchemyError) as e:
        logger.record_fetch_failure("sqlite", type(e).__name__)
        logger.error("Could not load profiles", db=str(path), error=str(e))
        raise SystemExit(f"Could not load profiles from {path}: {e}")
    logger.record_fetch_success("sqlite")
    return result


def format_match(match: MatchResult) -> str:
    user = match.candidate
    lines = [f"[{match.compatibility_score:>2}%] {user.display_name} ({user.id})"]
    details = " | ".join(v for v in (user.academic_year, user.department) if v)
    if details:
        lines.append(f"  {details}")
    for label, skills in (
        ("Can teach you", match.skills_they_can_teach),
        ("You can teach", match.skills_you_can_teach),
    ):
        if not skills:
            continue
        shown, hidden = skill_preview(skills)
        text = ", ".join(shown)
        if hidden:
            text += f", +{hidden} more"
        lines.append(f"  {label}: {text}")
    bonuses = []
    if match.interest_bonus:
        bonuses.append(f"shared interests: {', '.join(match.shared_interests)}")
    if match.department_bonus:
        bonuses.append("same department")
    if bonuses:
        lines.append(f"  Bonus: {'; '.join(bonuses)}")
    return "\n".join(lines)


def cmd_matches(args: argparse.Namespace) -> None:
    pool_limit = args.pool_limit if args.pool_limit is not None else candidate_limit()
    db = Path(args.db) if args.db else (None if args.store else db_path())
    if db is not None:
        subject, candidates = load_from_db(db, args.user, pool_limit)
    else:
        subject, candidates = load_from_store(Path(args.store or store_path()), args.user, pool_limit)

    if subject is None:
        raise SystemExit(f"User not found: {args.user}")

    matches = top_matches(subject, candidates, limit=args.limit, min_score=args.min_score)
    logger.record_match_run(scored=len(candidates))
    logger.info("Computed matches", user=subject.id, candidates=len(candidates), returned=len(matches))

    if args.json:
        print(json.dumps([m.to_dict() for m in matches], indent=2, ensure_ascii=False))
    elif not matches:
        print("No matches found.")
    else:
        print(f"Matches for {subject.display_name}:\n")
        for m in matches:
            print(format_match(m))
            print()

    if args.metrics:
        logger.log_metrics_summary()


def read_profile_doc(path: Path, strict: bool = False) -> dict:
    """Load a profile document, exiting with status 2 when it is invalid."""
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        doc = json.load(f)
    if strict:
        _, errors = validate_profile_strict(doc)
    else:
        errors = validate_profile(doc)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    return doc


def cmd_validate(args: argparse.Namespace) -> None:
    read_profile_doc(Path(args.input), strict=args.strict)
    print("Valid")


def cmd_add(args: argparse.Namespace) -> None:
    profile = UserProfile.from_dict(read_profile_doc(Path(args.input), strict=args.strict))
    path = Path(args.store or store_path())
    store = load_store(path)
    result = upsert_profile(store, profile)
    if result["status"] != "no-change":
        save_store(path, store)
    logger.info("Stored profile", user=profile.id, store=str(path), status=result["status"])
    print(f"{profile.id}: {result['status']}")


def cmd_list(args: argparse.Namespace) -> None:
    path = Path(args.store or store_path())
    if not path.exists():
        print(f"Store not found: {path}")
        return
    profiles = list_profiles(load_store(path))
    if not profiles:
        print("No users in store.")
        return
    print(f"Found {len(profiles)} users in {path}:\n")
    for p in profiles:
        print(f"ID: {p.id}")
        print(f"  Name: {p.display_name}")
        print(f"  Department: {p.department or '-'}")
        print(f"  Shares: {', '.join(p.skills_to_share) or '-'}")
        print(f"  Learns: {', '.join(p.skills_to_learn) or '-'}")
        print(f"  Interests: {', '.join(p.interests) or '-'}")
        print()


def cmd_import_db(args: argparse.Namespace) -> None:
    source = Path(args.store or store_path())
    target = Path(args.db) if args.db else db_path()
    if target is None:
        raise SystemExit("No database given. Pass --db or set SKILLMATCH_DB.")
    if not source.exists():
        raise SystemExit(f"Store not found: {source}")

    profiles = list_profiles(load_store(source))
    print(f"Found {len(profiles)} valid users in {source}")
    if args.dry_run:
        for p in profiles[:5]:
            print(f"  {p.id}: {p.display_name}")
        if len(profiles) > 5:
            print(f"  ... and {len(profiles) - 5} more")
        return

    init_database(target)
    session = get_session(target)
    counts = {"new": 0, "updated": 0, "no-change": 0}
    try:
        for p in profiles:
            counts[save_profile(session, p)] += 1
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Import failed", db=str(target), error=str(e))
        raise SystemExit(f"Import failed: {e}")
    finally:
        session.close()
    print(f"Done. new={counts['new']} updated={counts['updated']} no-change={counts['no-change']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skillmatch", description="SkillMatch - complementary skill matchmaking")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    mat = subparsers.add_parser("matches", help="Rank other users by compatibility with a user")
    mat.add_argument("--user", required=True, help="Id of the user to match for")
    mat.add_argument("--store", help="Path to JSON profile store (default: SKILLMATCH_STORE or data/profiles.json)")
    mat.add_argument("--db", help="Path to SQLite database (default: SKILLMATCH_DB); overrides --store")
    mat.add_argument("--limit", type=int, help="Show at most this many matches")
    mat.add_argument("--min-score", type=int, default=0, help="Hide matches scoring below this")
    mat.add_argument("--pool-limit", type=int, help="Candidates fetched (default: SKILLMATCH_CANDIDATE_LIMIT or 100)")
    mat.add_argument("--json", action="store_true", help="Print match payloads as JSON")
    mat.add_argument("--metrics", action="store_true", help="Log a metrics summary at the end")
    mat.set_defaults(func=cmd_matches)

    val = subparsers.add_parser("validate", help="Validate a user profile JSON document")
    val.add_argument("--input", required=True, help="Path to profile JSON input")
    val.add_argument("--strict", action="store_true", help="Also require department and full name")
    val.set_defaults(func=cmd_validate)

    add = subparsers.add_parser("add", help="Validate a profile and add or update it in the JSON store")
    add.add_argument("--input", required=True, help="Path to profile JSON input")
    add.add_argument("--store", help="Path to JSON profile store")
    add.add_argument("--strict", action="store_true", help="Also require department and full name")
    add.set_defaults(func=cmd_add)

    lst = subparsers.add_parser("list", help="List users in the JSON store")
    lst.add_argument("--store", help="Path to JSON profile store")
    lst.set_defaults(func=cmd_list)

    imp = subparsers.add_parser("import-db", help="Copy users from the JSON store into SQLite")
    imp.add_argument("--store", help="Path to JSON profile store")
    imp.add_argument("--db", help="Path to SQLite database")
    imp.add_argument("--dry-run", action="store_true", help="Show what would be imported")
    imp.set_defaults(func=cmd_import_db)

    return parser


def main(argv: Optional[List[str]] = None):
    # Load .env if present (SKILLMATCH_STORE, SKILLMATCH_DB, ...)
    load_env()
    logger.set_level(os.getenv("SKILLMATCH_LOG_LEVEL", "INFO"))
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
