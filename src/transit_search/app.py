"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` from here, not from server.py.
"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "Transit Search",
    instructions=(
        "Scheduled bus and train trip search - stop lookup, trips between two stops "
        "on a date, fares, route geometry and seat maps"
    ),
)
