"""DMS documents: guides and protocols shared with the whole organization."""
from sqlalchemy import select

from app.core.exceptions import ValidationError
from app.models.auth import User
from app.models.document import DmsDocument
from app.services.store import TrackerStore


def list_documents(store: TrackerStore) -> list[DmsDocument]:
    stmt = select(DmsDocument).order_by(DmsDocument.last_updated.desc(), DmsDocument.id.desc())
    return list(store.session.execute(stmt).scalars())


def create_document(store: TrackerStore, title: str, content: str = "", author: User | None = None) -> DmsDocument:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required", details={"title": "required"})
    doc = DmsDocument(title=title, content=content or "", author_id=author.id if author is not None else None)
    store.session.add(doc)
    store.commit()
    return doc
