#!/usr/bin/env python3
"""Global News Curator: a daily AI-curated world news digest.

Gemini picks ten stories, weighting global importance against your
preference profile. Like and dislike stories, let the curator learn from
your likes, and forward the digest to a Slack webhook.

Commands:
    interactive Browse, rate and send digests in a terminal session
    digest      Fetch one digest and print it (optionally send or copy)
    run         Unattended fetch -> format -> dispatch (once or continuously)
    prefs       Show or change the preference profile
    export      Write the standalone scheduled bot bundle
    status      Show configuration and profile

Examples:
    python main.py interactive
    python main.py digest --send
    python main.py run -c --interval 86400
    python main.py prefs set --keywords "AI, Space, Climate" --webhook https://hooks.slack.com/...
    python main.py export --output-dir bot/

Environment:
    GEMINI_API_KEY: Required for the AI agents
    See config.py for all configuration options
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from config import Config
from database import PreferenceStore
from models.news import NewsItem
from models.preferences import UserPreferences, split_csv
from observability.logging import setup_logging
from observability.tracing import setup_tracing

INTERACTIVE_HELP = """Commands:
  refresh        Generate a new digest
  l N / d N      Like / dislike story N (again to undo)
  learn          Update preferences from liked stories
  send           Send the digest to Slack
  copy           Copy the digest as text
  show           Show the digest again
  prefs          Edit preferences
  help           Show this help
  quit           Exit"""


def render_item(number: int, item: NewsItem, liked: bool = False, disliked: bool = False) -> str:
    """Render one story as a terminal card."""
    marker = " [liked]" if liked else " [disliked]" if disliked else ""
    icon = "🔥" if item.is_high_relevance else "📰"
    lines = [
        f"{number:>2}. {icon} {item.title}{marker}",
        f"    {item.category} | relevance {item.relevance_score}",
        f"    {item.summary}",
        f"    Why: {item.reason_for_selection}",
        f"    {item.source or 'Unknown Source'} - {item.url or '#'}",
    ]
    return "\n".join(lines)


def render_preferences(prefs: UserPreferences) -> str:
    return json.dumps(prefs.model_dump(by_alias=True), indent=2, ensure_ascii=False)


def _prompt_field(label: str, current: str) -> str:
    value = input(f"{label} [{current}]: ").strip()
    return value if value else current


def edit_preferences(prefs: UserPreferences) -> UserPreferences:
    """Prompt for every profile field, keeping current values on Enter."""
    print("Comma-separate multiple values. Press Enter to keep the current value.")
    return UserPreferences.from_csv_fields(
        keywords=_prompt_field("Keywords", ", ".join(prefs.keywords)),
        liked=_prompt_field("Liked categories", ", ".join(prefs.liked_categories)),
        disliked=_prompt_field("Disliked categories", ", ".join(prefs.disliked_categories)),
        webhook_url=_prompt_field("Slack webhook URL", prefs.webhook_url),
    )


def cmd_interactive(args: argparse.Namespace, config: Config) -> int:
    """Run the interactive session."""
    from session import DigestSession, LoadingState, Notice, NoticeLevel

    def show_notice(notice) -> None:
        prefix = {"success": "✓", "warning": "!", "error": "✗"}.get(notice.level.value, "·")
        print(f"{prefix} {notice.message}")

    def show_digest(session: DigestSession) -> None:
        if not session.digest:
            print('No digest yet. Type "refresh" to fetch the latest world news.')
            return
        print(f"\n=== Today's Digest ({len(session.digest)} stories) ===\n")
        for number, item in enumerate(session.digest, start=1):
            print(render_item(
                number,
                item,
                liked=item.id in session.feedback.liked,
                disliked=item.id in session.feedback.disliked,
            ))
            print()

    async def handle(session: DigestSession, command: str, rest: str) -> None:
        if command == "help":
            print(INTERACTIVE_HELP)
        elif command == "refresh":
            print("Generating...")
            show_notice(await session.generate_digest())
            if session.status is LoadingState.SUCCESS:
                show_digest(session)
        elif command == "show":
            show_digest(session)
        elif command in ("l", "like", "d", "dislike"):
            try:
                item = session.item_at(int(rest))
            except (ValueError, IndexError):
                print(f"Usage: {command} N (1-{len(session.digest)})")
                return
            if command.startswith("l"):
                session.like(item.id)
            else:
                session.dislike(item.id)
            print(render_item(
                int(rest),
                item,
                liked=item.id in session.feedback.liked,
                disliked=item.id in session.feedback.disliked,
            ))
        elif command == "learn":
            print("Analyzing your preferences...")
            show_notice(await session.learn())
        elif command == "send":
            notice = await session.send_digest()
            show_notice(notice)
            if notice.needs_configuration:
                show_notice(session.save_preferences(edit_preferences(session.preferences)))
        elif command == "copy":
            show_notice(session.copy_digest())
        elif command == "prefs":
            show_notice(session.save_preferences(edit_preferences(session.preferences)))
        else:
            show_notice(Notice(f"Unknown command '{command}'. Type \"help\".", NoticeLevel.WARNING))

    async def repl(session: DigestSession) -> None:
        print(INTERACTIVE_HELP)
        while True:
            try:
                line = (await asyncio.to_thread(input, "\n> ")).strip()
            except EOFError:
                return
            if not line:
                continue
            command, _, rest = line.partition(" ")
            command = command.lower()
            if command in ("quit", "exit", "q"):
                return
            try:
                await handle(session, command, rest)
            except Exception as e:
                logging.getLogger(__name__).error("Command failed | cmd=%s error=%s", command, e, exc_info=True)
                show_notice(Notice(f"Command failed: {e}", NoticeLevel.ERROR))

    with PreferenceStore(config.db_path) as store:
        session = DigestSession(config, store)
        try:
            asyncio.run(repl(session))
        except KeyboardInterrupt:
            pass
    return 0


def cmd_digest(args: argparse.Namespace, config: Config) -> int:
    """Fetch one digest and print it."""
    from session import DigestSession, LoadingState

    async def run_digest(session: DigestSession) -> int:
        notice = await session.generate_digest()
        if session.status is not LoadingState.SUCCESS:
            print(notice.message, file=sys.stderr)
            if session.last_error:
                print(f"Details: {session.last_error}", file=sys.stderr)
            return 1

        for number, item in enumerate(session.digest, start=1):
            print(render_item(number, item))
            print()

        if args.send:
            print((await session.send_digest()).message)
        if args.copy:
            print(session.copy_digest().message)
        return 0

    with PreferenceStore(config.db_path) as store:
        session = DigestSession(config, store)
        return asyncio.run(run_digest(session))


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    """Execute unattended digest delivery."""
    from pipeline import run_continuous, run_once

    if args.interval:
        config.poll_interval_seconds = args.interval

    logger = logging.getLogger(__name__)

    try:
        if args.continuous:
            logger.info("Starting continuous mode...")
            asyncio.run(run_continuous(config))
            return 0
        stats = asyncio.run(run_once(config))
        logger.info("Run complete | stats=%s", json.dumps(stats.to_dict()))
        return 0 if stats.delivered else 1
    except KeyboardInterrupt:
        logger.info("Stopped by user (Ctrl+C)")
        return 130  # Standard exit code for SIGINT


def cmd_prefs(args: argparse.Namespace, config: Config) -> int:
    """Show or update the saved profile."""
    with PreferenceStore(config.db_path) as store:
        prefs = store.load()

        if args.action == "set":
            update: dict = {}
            if args.keywords is not None:
                update["keywords"] = split_csv(args.keywords)
            if args.liked is not None:
                update["liked_categories"] = split_csv(args.liked)
            if args.disliked is not None:
                update["disliked_categories"] = split_csv(args.disliked)
            if args.webhook is not None:
                update["webhook_url"] = args.webhook.strip()
            if not update:
                print("Nothing to change. Pass --keywords, --liked, --disliked or --webhook.", file=sys.stderr)
                return 1
            # Re-validate so the ordered-set rule applies to the new values
            prefs = UserPreferences.model_validate(prefs.model_copy(update=update).model_dump())
            store.save(prefs)
        elif args.action == "reset":
            prefs = UserPreferences.default()
            store.save(prefs)

    print(render_preferences(prefs))
    return 0


def cmd_export(args: argparse.Namespace, config: Config) -> int:
    """Write the standalone automation bundle."""
    from automation import write_automation_bundle

    with PreferenceStore(config.db_path) as store:
        prefs = store.load()

    paths = write_automation_bundle(prefs, Path(args.output_dir), config, cron=args.cron)
    print(f"Wrote {len(paths)} files to {args.output_dir}:")
    for path in paths:
        print(f"- {path}")
    print("Add GEMINI_API_KEY as a repository secret, then push the files to GitHub.")
    if not prefs.webhook_url:
        print("Note: no webhook saved; edit the URL in the script before use.")
    return 0


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """Display configuration and the saved profile."""
    with PreferenceStore(config.db_path) as store:
        prefs = store.load()

    status = {
        "config": {
            "language": config.language,
            "curator_model": config.curator_model,
            "analyst_model": config.analyst_model,
            "search_grounding": config.search_grounding,
            "delivery_mode": config.delivery_mode,
            "webhook_override": bool(config.webhook_url),
            "poll_interval": config.poll_interval_seconds,
            "enable_logfire": config.enable_logfire,
        },
        "database": {"path": str(config.db_path)},
        "preferences": prefs.model_dump(by_alias=True),
    }
    print(json.dumps(status, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Global News Curator: AI-curated daily world news",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--lang",
        choices=["en", "ja", "zh"],
        help="Language of titles and summaries (default: config LANGUAGE)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("interactive", help="Interactive digest session")

    digest_parser = subparsers.add_parser("digest", help="Fetch and print one digest")
    digest_parser.add_argument(
        "--send",
        action="store_true",
        help="Send the digest to the saved Slack webhook",
    )
    digest_parser.add_argument(
        "--copy",
        action="store_true",
        help="Copy the digest text to the clipboard",
    )

    run_parser = subparsers.add_parser("run", help="Unattended fetch and delivery")
    run_parser.add_argument(
        "-c", "--continuous",
        action="store_true",
        help="Keep running on an interval",
    )
    run_parser.add_argument(
        "--interval",
        type=int,
        help="Seconds between runs (continuous mode)",
    )

    prefs_parser = subparsers.add_parser("prefs", help="Show or change preferences")
    prefs_parser.add_argument(
        "action",
        nargs="?",
        choices=["show", "set", "reset"],
        default="show",
    )
    prefs_parser.add_argument("--keywords", help="Comma-separated keywords")
    prefs_parser.add_argument("--liked", help="Comma-separated liked categories")
    prefs_parser.add_argument("--disliked", help="Comma-separated disliked categories")
    prefs_parser.add_argument("--webhook", help="Slack incoming webhook URL")

    export_parser = subparsers.add_parser("export", help="Write the scheduled bot bundle")
    export_parser.add_argument(
        "--output-dir",
        default="daily-news-bot",
        help="Directory for the bundle (default: daily-news-bot)",
    )
    export_parser.add_argument(
        "--cron",
        default="0 22 * * *",
        help="Workflow schedule in UTC (default: '0 22 * * *', 07:00 JST)",
    )

    subparsers.add_parser("status", help="Show configuration and preferences")
    return parser


def main() -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args()

    config = Config.load()
    if args.lang:
        config.language = args.lang

    setup_logging(config, verbose=args.verbose, console=args.command != "interactive")
    setup_tracing(enabled=config.enable_logfire, token=config.logfire_token)

    # Validate configuration for commands that call the AI service
    if args.command in ("interactive", "digest", "run"):
        error = config.validate()
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    commands = {
        "interactive": cmd_interactive,
        "digest": cmd_digest,
        "run": cmd_run,
        "prefs": cmd_prefs,
        "export": cmd_export,
        "status": cmd_status,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except Exception as e:
            logging.getLogger(__name__).error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
