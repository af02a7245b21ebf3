"""Tag normalization and storage.

Tags travel over the API as one comma-delimited string and are stored as
normalized Tag rows joined to clips in their original order.

A tag name is at most MAX_TAG_LENGTH characters. Longer names are cut to
that length when parsed, and names that collide after the cut are merged.
"""

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from clipshare.db.models import Clip, ClipTag, Tag
from clipshare.db.session import insert_for

MAX_TAG_LENGTH = 64


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-delimited tag string into normalized tag names.

    Names are trimmed, lowercased and truncated to MAX_TAG_LENGTH; empties
    and duplicates are dropped, first occurrence wins.

    >>> parse_tags(" Funny, gaming,,funny ")
    ['funny', 'gaming']
    """
    if not raw:
        return []
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip().lower()[:MAX_TAG_LENGTH]
        if name and name not in names:
            names.append(name)
    return names


def format_tags(names: list[str]) -> str:
    return ", ".join(names)


def _get_or_create_tags(db: Session, names: list[str]) -> dict[str, Tag]:
    # Two uploads may introduce the same new tag at once; the second insert is a no-op
    db.execute(
        insert_for(db, Tag)
        .values([{"name": name} for name in names])
        .on_conflict_do_nothing(index_elements=["name"])
    )
    return {
        tag.name: tag for tag in db.execute(select(Tag).where(Tag.name.in_(names))).scalars()
    }


def set_clip_tags(db: Session, clip: Clip, names: list[str]) -> None:
    """Replace a clip's tags, keeping the given order.

    Does not commit; callers run this inside their own transaction.
    """
    names = list(dict.fromkeys(names))
    clip.clip_tags.clear()
    db.flush()
    if not names:
        return
    tags = _get_or_create_tags(db, names)
    for position, name in enumerate(names):
        clip.clip_tags.append(ClipTag(tag=tags[name], position=position))
    db.flush()


def tag_counts(db: Session, limit: int = 10) -> list[tuple[str, int]]:
    """Most used tags as (name, clip_count), highest first, ties by name."""
    count = func.count(ClipTag.clip_id).label("count")
    rows = db.execute(
        select(Tag.name, count)
        .join(ClipTag, ClipTag.tag_id == Tag.id)
        .group_by(Tag.name)
        .order_by(desc(count), Tag.name)
        .limit(limit)
    ).all()
    return [(name, n) for name, n in rows]
