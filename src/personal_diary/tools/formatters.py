"""Compact output formatters for MCP tool responses."""

from datetime import datetime

from personal_diary.models.entry import Entry, EntryStats
from personal_diary.models.tag import TagStats, TagUsage
from personal_diary.models.version import EntryVersion


def format_timestamp(value: datetime) -> str:
    """Format: 2024-05-01 09:30 (UTC)."""
    return value.strftime("%Y-%m-%d %H:%M")


def format_entry_header(entry: Entry) -> str:
    """Format: [3f2a...] Title (v3)."""
    return f"[{entry.id}] {entry.title} (v{entry.version})"


def format_entry_meta(entry: Entry) -> str:
    """Format: #tag1 #tag2 | created 2024-05-01 09:30 | updated ... | 2 image(s)."""
    parts: list[str] = []
    if entry.tags:
        parts.append(" ".join(f"#{t}" for t in entry.tags))
    parts.append(f"created {format_timestamp(entry.created_at)}")
    if entry.updated_at != entry.created_at:
        parts.append(f"updated {format_timestamp(entry.updated_at)}")
    if entry.images:
        parts.append(f"{len(entry.images)} image(s)")
    return " | ".join(parts)


def format_entry_compact(entry: Entry) -> str:
    """Header + meta + summary, no content. For diary_search and diary_store."""
    lines = [format_entry_header(entry), f"  {format_entry_meta(entry)}"]
    if entry.summary:
        lines.append(f"  {entry.summary}")
    return "\n".join(lines)


def format_entry_full(entry: Entry) -> str:
    """Header + meta + full content + image refs. For diary_get."""
    lines = [format_entry_header(entry), f"  {format_entry_meta(entry)}"]
    if entry.history:
        lines.append(f"  {len(entry.history)} earlier version(s)")
    if entry.content:
        lines.append("")
        lines.append(entry.content)
    for ref in entry.images:
        lines.append(f"  image: {ref[:80]}")
    return "\n".join(lines)


def format_version(version: EntryVersion) -> str:
    """One line per version: v3 (2024-05-01 09:30) Title [current]."""
    line = f"v{version.version} ({format_timestamp(version.updated_at)}) {version.title}"
    if version.is_current:
        line += " [current]"
    return line


def format_tag_usage(usage: TagUsage) -> str:
    """Format: [id] name #3B82F6 (3 entries)."""
    tag = usage.tag
    return f"[{tag.id}] {tag.name} {tag.color} ({usage.usage_count} entries)"


def format_entry_stats(stats: EntryStats) -> str:
    lines = ["Diary Statistics\n"]
    lines.append(f"Entries: {stats.total_entries}")
    lines.append(f"Words: {stats.total_words} ({stats.average_words_per_entry} per entry)")
    lines.append(f"Created in the last 7 days: {stats.entries_this_week}")
    lines.append(f"Created in the last 30 days: {stats.entries_this_month}")
    lines.append(f"Images: {stats.total_images}")
    return "\n".join(lines)


def format_tag_stats(stats: TagStats) -> str:
    lines = ["Tag Statistics\n"]
    lines.append(
        f"Tags: {stats.total_tags} total ({stats.used_tags} used, {stats.unused_tags} unused)"
    )
    lines.append(f"Usage: {stats.total_usage} ({stats.average_usage_per_tag:.2f} per tag)")
    return "\n".join(lines)


def format_result_list(
    formatted_entries: list[str],
    header: str | None = None,
) -> str:
    """Optional header, count, then entries joined by blank lines."""
    if not formatted_entries:
        return "No results found."

    lines: list[str] = []
    if header:
        lines.append(header)
    lines.append(f"{len(formatted_entries)} result(s)")
    lines.append("")
    lines.append("\n\n".join(formatted_entries))
    return "\n".join(lines)
