"""Operator console for chat-exp."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

from chat_exp.activity import ActivityTracker, record_activity
from chat_exp.config import get_data_dir, load_config, save_config, set_data_dir
from chat_exp.display import (
    console,
    print_double_exp_status,
    print_error,
    print_exp_change,
    print_ladder,
    print_level_info,
)
from chat_exp.engine import ExpEngine
from chat_exp.leaderboard import DEFAULT_LADDER_SIZE
from chat_exp.ledger import to_id

CONSOLE_ISSUER = "console"


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chat-exp",
        description="Manage the chat EXP ledger",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command")

    level_p = subparsers.add_parser("level", help="Show a user's EXP and level")
    level_p.add_argument("user")

    for name, help_text in (("give", "Give EXP to a user"), ("take", "Take EXP from a user")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("user")
        p.add_argument("amount", type=int)
        p.add_argument("--reason", "-r", default=None)
        p.add_argument("--by", default=CONSOLE_ISSUER, help="Issuer recorded in the log")

    reset_p = subparsers.add_parser("reset", help="Reset a user's EXP to 0")
    reset_p.add_argument("user")
    reset_p.add_argument("--reason", "-r", default=None)

    reset_all_p = subparsers.add_parser("reset-all", help="Reset every user's EXP to 0")
    reset_all_p.add_argument("--reason", "-r", default=None)

    ladder_p = subparsers.add_parser("ladder", help="Show the top users by EXP")
    ladder_p.add_argument("--limit", "-n", type=int, default=DEFAULT_LADDER_SIZE)

    dexp_p = subparsers.add_parser(
        "double-exp",
        help='Toggle double EXP: no argument flips it, "off" disables, '
        '"2 hours" / "1 day" / "30 minutes" enables for a while, "status" shows it',
    )
    dexp_p.add_argument("argument", nargs="*")

    message_p = subparsers.add_parser("message", help="Record chat activity for a user (cooldown applies)")
    message_p.add_argument("user")

    config_p = subparsers.add_parser("config", help="Show or change settings")
    config_p.add_argument("--data-dir", default=None, help="Directory holding exp.json and exp-config.json")
    config_p.add_argument("--cooldown-ms", type=int, default=None, help="Self-grant cooldown in milliseconds")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    command = args.command or "ladder"

    if command == "config":
        do_config(data_dir=args.data_dir, cooldown_ms=args.cooldown_ms)
        return

    engine = ExpEngine.from_config().load()
    try:
        if command == "level":
            do_level(engine, args.user)
        elif command == "give":
            do_give(engine, args.user, args.amount, reason=args.reason, issuer=args.by)
        elif command == "take":
            do_take(engine, args.user, args.amount, reason=args.reason, issuer=args.by)
        elif command == "reset":
            do_reset(engine, args.user, reason=args.reason)
        elif command == "reset-all":
            do_reset_all(engine, reason=args.reason)
        elif command == "ladder":
            do_ladder(engine, limit=getattr(args, "limit", DEFAULT_LADDER_SIZE))
        elif command == "double-exp":
            do_double_exp(engine, " ".join(args.argument))
        elif command == "message":
            do_message(engine, args.user)
    except ValueError as exc:
        print_error(str(exc))
        sys.exit(1)
    finally:
        engine.close()


def do_level(engine: ExpEngine, user: str) -> dict:
    user_id = to_id(user)
    info = engine.level_info(user_id)
    print_level_info(user_id, info)
    return {"user": user_id, "level": info.level, "exp": info.current_exp}


def do_give(engine: ExpEngine, user: str, amount: int, reason: str | None = None,
            issuer: str = CONSOLE_ISSUER) -> dict:
    """Privileged grant. Never throttled, doubled while double EXP is on."""
    doubled = engine.is_double_exp_active()
    new_exp = engine.grant(user, amount, reason=reason or "No reason specified.", issuer=issuer)
    user_id = to_id(user)
    print_exp_change("Gave", user_id, amount, engine.level_info(user_id), doubled=doubled)
    return {"ok": True, "user": user_id, "exp": new_exp, "doubled": doubled}


def do_take(engine: ExpEngine, user: str, amount: int, reason: str | None = None,
            issuer: str = CONSOLE_ISSUER) -> dict:
    user_id = to_id(user)
    before = engine.read(user_id)
    new_exp = engine.take(user_id, amount, reason=reason or "No reason specified.", issuer=issuer)
    if new_exp == before:
        print_error(f"{user_id} only has {before} EXP; nothing was taken.")
        return {"ok": False, "user": user_id, "exp": new_exp}
    print_exp_change("Took", user_id, amount, engine.level_info(user_id))
    return {"ok": True, "user": user_id, "exp": new_exp}


def do_reset(engine: ExpEngine, user: str, reason: str | None = None) -> dict:
    user_id = to_id(user)
    engine.reset_user(user_id)
    console.print(f"Reset [bold]{user_id}[/]'s EXP to 0 (Level 0) ({reason or 'No reason specified.'}).")
    return {"ok": True, "user": user_id}


def do_reset_all(engine: ExpEngine, reason: str | None = None) -> dict:
    engine.reset_all()
    console.print(f"All user EXP has been reset to 0 (Level 0) ({reason or 'No reason specified.'}).")
    return {"ok": True}


def do_ladder(engine: ExpEngine, limit: int = DEFAULT_LADDER_SIZE) -> dict:
    rows = engine.ladder(limit)
    print_ladder(rows)
    return {"entries": rows, "count": len(rows)}


def do_double_exp(engine: ExpEngine, argument: str = "") -> dict:
    """Toggle double EXP, or just show it when the argument is "status"."""
    if argument.strip().lower() != "status":
        engine.toggle_double_exp(argument)
    status = engine.double_exp_status()
    print_double_exp_status(status)
    return status


def do_message(engine: ExpEngine, user: str) -> dict:
    """What the chat layer does for each public message: a self-triggered 1 EXP grant."""
    user_id = to_id(user)
    before = engine.read(user_id)
    new_exp = record_activity(engine, ActivityTracker(clock=engine.clock), user_id)
    changed = new_exp != before
    if changed:
        console.print(f"[bold]{user_id}[/] now has {new_exp} EXP.")
    else:
        console.print(f"[dim]{user_id} is on cooldown.[/]")
    return {"user": user_id, "exp": new_exp, "changed": changed}


def do_config(data_dir: str | None = None, cooldown_ms: int | None = None,
              config_path: Path | None = None) -> dict:
    if data_dir:
        set_data_dir(Path(data_dir).expanduser().resolve(), config_path)
    if cooldown_ms is not None:
        if cooldown_ms < 0:
            print_error("Cooldown must not be negative.")
            return {"ok": False}
        config = load_config(config_path)
        config["cooldown_ms"] = cooldown_ms
        save_config(config, config_path)
    config = load_config(config_path)
    result = {"ok": True, "data_dir": str(get_data_dir(config_path)), **config}
    console.print(f"Data directory: {result['data_dir']}")
    if "cooldown_ms" in config:
        console.print(f"Cooldown: {config['cooldown_ms']} ms")
    return result


if __name__ == "__main__":
    main()
