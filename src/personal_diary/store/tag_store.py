"""Tag identity, colours and usage counts."""

import logging
import random

from personal_diary.clock import Clock, SystemClock
from personal_diary.db.backend import Database
from personal_diary.db.queries import (
    count_entries_with_tag,
    delete_tag,
    get_tag_by_id,
    get_tag_by_key,
    insert_tag,
    list_tags,
    new_id,
    update_tag,
)
from personal_diary.db.retry import RetryPolicy, with_retry
from personal_diary.errors import ValidationError
from personal_diary.identity import Identity, require_auth
from personal_diary.models.tag import TAG_COLORS, Tag, TagStats, TagUsage, tag_key

logger = logging.getLogger(__name__)


def normalize_color(color: str) -> str:
    """Validate a palette colour and return its canonical upper-case form."""
    canonical = color.strip().upper()
    if canonical not in TAG_COLORS:
        raise ValidationError(f"Unknown tag color {color!r}. Use one of: {', '.join(TAG_COLORS)}")
    return canonical


def normalize_name(name: str) -> str:
    """Strip surrounding whitespace; reject empty names."""
    stripped = name.strip()
    if not stripped:
        raise ValidationError("Tag name must not be empty")
    return stripped


class TagStore:
    """Per-user tags, unique by case-insensitive name.

    Entries refer to tags by name only. Deleting or renaming a tag never
    touches entries, so old entries may keep showing a stale name.
    """

    def __init__(
        self,
        db: Database,
        identity: Identity,
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        retry: RetryPolicy | None = None,
    ):
        """Initialize with a database connection and identity collaborator."""
        self.db = db
        self.identity = identity
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.retry = retry or RetryPolicy()

    async def get_by_name(self, name: str) -> Tag | None:
        """Case-insensitive exact match."""
        user_id = await require_auth(self.identity)
        if not name.strip():
            return None
        return await with_retry(
            lambda: get_tag_by_key(self.db, user_id, name), self.retry, "get tag by name"
        )

    async def get_by_id(self, tag_id: str) -> Tag | None:
        """Tag by id, or None."""
        user_id = await require_auth(self.identity)
        return await with_retry(
            lambda: get_tag_by_id(self.db, user_id, tag_id), self.retry, "get tag"
        )

    async def list_tags(self) -> list[Tag]:
        """All tags ordered by name."""
        user_id = await require_auth(self.identity)
        return await with_retry(lambda: list_tags(self.db, user_id), self.retry, "list tags")

    async def get_or_create(self, name: str, color: str | None = None) -> Tag:
        """Return the tag called ``name`` (any case), creating it if absent.

        An existing tag is returned unchanged and ``color`` is not checked;
        it is validated against the palette only when a tag is created.
        """
        name = normalize_name(name)
        user_id = await require_auth(self.identity)

        async def _attempt() -> Tag:
            async with self.db.transaction():
                return await self.resolve(user_id, name, color)

        return await with_retry(_attempt, self.retry, f"get or create tag {name!r}")

    async def resolve(self, user_id: str, name: str, color: str | None = None) -> Tag:
        """Get-or-create without retry, for callers already inside a transaction."""
        existing = await get_tag_by_key(self.db, user_id, name)
        if existing is not None:
            return existing
        if color is not None:
            color = normalize_color(color)
        tag = Tag(
            id=new_id(),
            name=name,
            color=color or self.rng.choice(TAG_COLORS),
            created_at=self.clock.now(),
        )
        await insert_tag(self.db, user_id, tag)
        logger.info("Created tag %s: %s", tag.id, tag.name)
        return tag

    async def update(
        self, tag_id: str, *, name: str | None = None, color: str | None = None
    ) -> Tag | None:
        """Rename and/or recolour a tag. Returns None if the tag does not exist."""
        if name is not None:
            name = normalize_name(name)
        if color is not None:
            color = normalize_color(color)
        user_id = await require_auth(self.identity)

        async def _attempt() -> Tag | None:
            async with self.db.transaction():
                current = await get_tag_by_id(self.db, user_id, tag_id)
                if current is None:
                    return None
                if name is not None and tag_key(name) != tag_key(current.name):
                    clash = await get_tag_by_key(self.db, user_id, name)
                    if clash is not None:
                        raise ValidationError(f"A tag named {clash.name!r} already exists")
                updated = current.model_copy(
                    update={
                        "name": name if name is not None else current.name,
                        "color": color if color is not None else current.color,
                    }
                )
                await update_tag(self.db, user_id, updated)
                return updated

        updated = await with_retry(_attempt, self.retry, f"update tag {tag_id}")
        if updated is not None:
            logger.info("Updated tag %s: %s %s", updated.id, updated.name, updated.color)
        return updated

    async def delete(self, tag_id: str) -> bool:
        """Delete a tag. Entries keep the name as plain text."""
        user_id = await require_auth(self.identity)

        async def _attempt() -> bool:
            async with self.db.transaction():
                return await delete_tag(self.db, user_id, tag_id)

        deleted = await with_retry(_attempt, self.retry, f"delete tag {tag_id}")
        if deleted:
            logger.info("Deleted tag %s", tag_id)
        return deleted

    async def usage_count(self, tag_id: str) -> int:
        """Entries currently referencing this tag's name. 0 for an unknown tag."""
        user_id = await require_auth(self.identity)

        async def _attempt() -> int:
            tag = await get_tag_by_id(self.db, user_id, tag_id)
            if tag is None:
                return 0
            return await count_entries_with_tag(self.db, user_id, tag.name)

        return await with_retry(_attempt, self.retry, f"usage count for tag {tag_id}")

    async def usages(self) -> list[TagUsage]:
        """Every tag with its usage count, ordered by name."""
        user_id = await require_auth(self.identity)

        async def _attempt() -> list[TagUsage]:
            usages: list[TagUsage] = []
            for tag in await list_tags(self.db, user_id):
                count = await count_entries_with_tag(self.db, user_id, tag.name)
                usages.append(TagUsage(tag=tag, usage_count=count))
            return usages

        return await with_retry(_attempt, self.retry, "tag usages")

    async def unused_tags(self) -> list[Tag]:
        """Tags no entry references."""
        return [u.tag for u in await self.usages() if u.usage_count == 0]

    async def most_used_tags(self, limit: int = 10) -> list[TagUsage]:
        """Tags by descending usage; ties keep name order."""
        usages = await self.usages()
        return sorted(usages, key=lambda u: u.usage_count, reverse=True)[:limit]

    async def tag_stats(self) -> TagStats:
        """Totals over all tags."""
        usages = await self.usages()
        total_usage = sum(u.usage_count for u in usages)
        used = sum(1 for u in usages if u.usage_count > 0)
        return TagStats(
            total_tags=len(usages),
            used_tags=used,
            unused_tags=len(usages) - used,
            total_usage=total_usage,
            average_usage_per_tag=round(total_usage / len(usages), 2) if usages else 0.0,
        )
