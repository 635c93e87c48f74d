"""
Delivery Tracker
DMS document model (guides, QA protocols, style guides).
"""

from datetime import date

from app.models import db


class DmsDocument(db.Model):
    __tablename__ = "dms_documents"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    content = db.Column(db.Text, default="")
    author_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_updated = db.Column(db.Date, nullable=False, default=date.today)

    author = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author_id": self.author_id,
            "author": self.author.name if self.author else None,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
