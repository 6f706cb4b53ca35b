"""diary_tags MCP tool: tag management."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from personal_diary.errors import DiaryError
from personal_diary.models.tag import TAG_COLORS
from personal_diary.store.tag_store import TagStore
from personal_diary.tools.formatters import format_tag_usage

logger = logging.getLogger(__name__)

_ACTIONS = {"list", "create", "update", "delete"}


async def manage_tags(
    tags: TagStore,
    action: str,
    *,
    tag_id: str | None = None,
    name: str | None = None,
    color: str | None = None,
) -> str:
    """Run one tag action and render the outcome."""
    if action not in _ACTIONS:
        return f"Unknown action '{action}'. Use: {', '.join(sorted(_ACTIONS))}"

    try:
        if action == "list":
            return await _action_list(tags)
        elif action == "create":
            return await _action_create(tags, name, color)
        elif action == "update":
            return await _action_update(tags, tag_id, name, color)
        elif action == "delete":
            return await _action_delete(tags, tag_id)
    except DiaryError as e:
        return f"Error: {e}"

    return "Action not implemented."


async def _action_list(tags: TagStore) -> str:
    usages = await tags.usages()
    if not usages:
        return "No tags yet."
    lines = [f"{len(usages)} tag(s)", ""]
    lines.extend(format_tag_usage(u) for u in usages)
    return "\n".join(lines)


async def _action_create(tags: TagStore, name: str | None, color: str | None) -> str:
    if not name:
        return "Error: name is required for create action."
    tag = await tags.get_or_create(name, color)
    return f"Tag [{tag.id}] {tag.name} {tag.color}"


async def _action_update(
    tags: TagStore, tag_id: str | None, name: str | None, color: str | None
) -> str:
    if not tag_id:
        return "Error: tag_id is required for update action."
    if name is None and color is None:
        return "Error: provide name and/or color to update."
    tag = await tags.update(tag_id, name=name, color=color)
    if tag is None:
        return f"Error: Tag {tag_id} not found."
    return f"Updated tag [{tag.id}] {tag.name} {tag.color}"


async def _action_delete(tags: TagStore, tag_id: str | None) -> str:
    if not tag_id:
        return "Error: tag_id is required for delete action."
    if not await tags.delete(tag_id):
        return f"Error: Tag {tag_id} not found."
    return f"Deleted tag {tag_id}. Entries keep the name until they are next edited."


def register_diary_tags(mcp: FastMCP) -> None:
    """Register the diary_tags tool with the MCP server."""

    @mcp.tool()
    async def diary_tags(
        action: Annotated[
            str, Field(description="Tag action: list, create, update, delete")
        ] = "list",
        tag_id: Annotated[str | None, Field(description="Required for update and delete")] = None,
        name: Annotated[
            str | None, Field(description="Tag name for create, or new name for update")
        ] = None,
        color: Annotated[
            str | None,
            Field(description=f"Palette colour, one of: {', '.join(TAG_COLORS)}"),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """List and manage tags.

        Tag names are unique ignoring case. Creating an existing name returns
        the existing tag unchanged. Deleting a tag leaves its name on entries
        that already carry it.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        tags: TagStore = ctx.lifespan_context["tag_store"]
        return await manage_tags(tags, action, tag_id=tag_id, name=name, color=color)
