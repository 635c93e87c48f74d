"""
Delivery Tracker
Team structure: who leads each team and who buddies with whom.

Models:
    - TeamStructure: one row per TeamName with its lead
    - TeamMember: build/QA roster entry under a team
"""

from app.models import db
from app.models.enums import TeamName, enum_column_type

MEMBER_SECTIONS = ("build", "qa")


class TeamStructure(db.Model):
    __tablename__ = "team_structures"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(enum_column_type(TeamName), nullable=False, unique=True)
    lead = db.Column(db.String(200), nullable=False)

    members = db.relationship(
        "TeamMember", back_populates="team", cascade="all, delete-orphan",
        order_by="TeamMember.id",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name.value,
            "lead": self.lead,
            "build_team": [m.to_dict() for m in self.members if m.section == "build"],
            "qa_team": [m.to_dict() for m in self.members if m.section == "qa"],
        }


class TeamMember(db.Model):
    __tablename__ = "team_members"

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(
        db.Integer, db.ForeignKey("team_structures.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    section = db.Column(db.String(10), nullable=False, comment="build | qa")
    name = db.Column(db.String(200), nullable=False)
    buddy = db.Column(db.String(300), default="-")
    notes = db.Column(db.String(300), default="-")

    team = db.relationship("TeamStructure", back_populates="members")

    def to_dict(self):
        return {"name": self.name, "buddy": self.buddy, "notes": self.notes}
