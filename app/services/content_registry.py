"""
Reportable content lookup

app/services/content_registry.py

Maps every ContentType to the collection holding it, the field naming its
owner and the field used as its title snapshot.
"""
from dataclasses import dataclass
from typing import Optional

from bson import ObjectId

from app.models.base import ContentType

TITLE_SNAPSHOT_LENGTH = 100


@dataclass(frozen=True)
class ContentSource:
    collection: str
    owner_field: str
    title_field: str

    def owner_of(self, doc: dict) -> Optional[ObjectId]:
        owner = doc.get(self.owner_field)
        if owner is None:
            return None
        return owner if isinstance(owner, ObjectId) else ObjectId(str(owner))

    def title_of(self, doc: dict) -> Optional[str]:
        title = doc.get(self.title_field)
        if title is None:
            return None
        return str(title)[:TITLE_SNAPSHOT_LENGTH]


CONTENT_SOURCES = {
    ContentType.ARTWORK: ContentSource("artworks", "artist_id", "title"),
    ContentType.IMAGE: ContentSource("images", "user_id", "title"),
    # A user is the owner of their own profile
    ContentType.USER: ContentSource("users", "_id", "display_name"),
    ContentType.COMMENT: ContentSource("comments", "user_id", "content"),
    ContentType.MESSAGE: ContentSource("messages", "sender_id", "content"),
}

missing = set(ContentType) - set(CONTENT_SOURCES)
if missing:
    raise RuntimeError(f"No content source registered for: {sorted(m.value for m in missing)}")
del missing


def get_content_source(content_type: ContentType) -> ContentSource:
    return CONTENT_SOURCES[ContentType(content_type)]


async def find_content(db, content_type: ContentType, content_id: ObjectId) -> Optional[dict]:
    """Load the reported document, or None when it does not exist"""
    source = get_content_source(content_type)
    return await db[source.collection].find_one({"_id": content_id})
