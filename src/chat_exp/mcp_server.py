"""MCP server for chat-exp.

Exposes read-only EXP queries as MCP tools.
Run via: python3 -m chat_exp.mcp_server
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP

from chat_exp.leaderboard import DEFAULT_LADDER_SIZE

mcp = FastMCP(name="chat-exp")


def _get_engine():
    from chat_exp.engine import ExpEngine
    return ExpEngine.from_config().load()


@mcp.tool()
def get_level(user: str) -> dict[str, Any]:
    """Get a user's EXP, level, and progress towards the next level."""
    engine = _get_engine()
    try:
        try:
            info = engine.level_info(user)
        except ValueError as exc:
            return {"error": str(exc)}
        return {"user": user, **asdict(info)}
    finally:
        engine.close()


@mcp.tool()
def get_ladder(limit: int = DEFAULT_LADDER_SIZE) -> dict[str, Any]:
    """Get the top users by EXP with their levels."""
    engine = _get_engine()
    try:
        rows = engine.ladder(limit)
        return {"entries": rows, "count": len(rows)}
    finally:
        engine.close()


@mcp.tool()
def get_double_exp() -> dict[str, Any]:
    """Get whether double EXP is active and when it ends."""
    engine = _get_engine()
    try:
        return engine.double_exp_status()
    finally:
        engine.close()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
