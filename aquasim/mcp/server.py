"""MCP server wrapping AquariumService for interactive AI playtesting."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from aquasim.actions import ACTION_KINDS
from aquasim.service import DEFAULT_INSTANCE, AquariumService


@dataclass
class _ServiceHolder:
    """Holds the service every tool call goes through."""

    service: AquariumService


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_catalog_info(holder: _ServiceHolder) -> dict[str, Any]:
    catalog = holder.service.catalog
    return {
        "content_version": catalog.content_version,
        "tanks": [
            {
                "id": t.id,
                "name": t.name,
                "capacity": t.capacity,
                "unlock": t.unlock_label,
                "species": [s.id for s in t.species],
                "foods": [f.id for f in t.foods],
                "decor": [d.id for d in t.decor],
                "tools": [tool.id for tool in t.tools],
            }
            for t in catalog.tanks
        ],
    }


def _tool_get_state(holder: _ServiceHolder, instance_id: str) -> dict[str, Any]:
    return holder.service.get_state(instance_id or DEFAULT_INSTANCE)


def _tool_do_action(
    holder: _ServiceHolder,
    kind: str,
    payload: dict[str, Any] | None,
    instance_id: str,
) -> dict[str, Any]:
    return holder.service.do_action(instance_id or DEFAULT_INSTANCE, kind, payload or {})


def _tool_wait(holder: _ServiceHolder, hours: float, instance_id: str) -> dict[str, Any]:
    max_hours = holder.service.catalog.tuning.max_idle_hours
    if hours <= 0:
        return {"error": "Hours must be positive"}
    if hours > max_hours:
        return {"error": f"Cannot wait more than {max_hours:g} hours per call"}
    return holder.service.fast_forward(instance_id or DEFAULT_INSTANCE, hours)


def _tool_list_actions() -> dict[str, Any]:
    actions = []
    for kind, cls in sorted(ACTION_KINDS.items()):
        fields = [
            {
                "name": f.name,
                "type": str(f.type),
                "required": f.default is dataclasses.MISSING,
            }
            for f in dataclasses.fields(cls)
        ]
        actions.append({"kind": kind, "fields": fields})
    return {"actions": actions}


# ── Server factory ──────────────────────────────────────────────────


def create_server(service: AquariumService) -> FastMCP:
    """Create an MCP server exposing the aquarium's inbound operations."""
    holder = _ServiceHolder(service=service)

    mcp = FastMCP(
        name=f"Aquasim: catalog {service.catalog.content_version}",
    )

    @mcp.tool()
    def get_catalog_info() -> dict[str, Any]:
        """Get static catalog overview: tanks, unlock rules, species, food, decor, tools."""
        return _tool_get_catalog_info(holder)

    @mcp.tool()
    def get_state(instance_id: str = DEFAULT_INSTANCE) -> dict[str, Any]:
        """Catch the save up to now and return the full projected state."""
        return _tool_get_state(holder, instance_id)

    @mcp.tool()
    def do_action(
        kind: str,
        payload: dict[str, Any] | None = None,
        instance_id: str = DEFAULT_INSTANCE,
    ) -> dict[str, Any]:
        """Apply one action (see list_actions). Returns the new state plus action_result."""
        return _tool_do_action(holder, kind, payload, instance_id)

    @mcp.tool()
    def wait(hours: float, instance_id: str = DEFAULT_INSTANCE) -> dict[str, Any]:
        """Pretend the player was away for *hours*, then catch up and return the state."""
        return _tool_wait(holder, hours, instance_id)

    @mcp.tool()
    def list_actions() -> dict[str, Any]:
        """List every action kind with its payload fields."""
        return _tool_list_actions()

    return mcp
