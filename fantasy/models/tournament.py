from datetime import datetime, timezone

from fantasy import db


class Tournament(db.Model):
    __tablename__ = "tournaments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    remarks = db.Column(db.Text)
    image = db.Column(db.String(500))

    # Status
    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    matches = db.relationship(
        "Match", backref="tournament", lazy="dynamic", cascade="all, delete-orphan"
    )
    groups = db.relationship("Group", backref="tournament", lazy="dynamic")

    def __repr__(self):
        return f"<Tournament {self.name}>"

    def to_dict(self):
        """Convert tournament to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "remarks": self.remarks,
            "is_active": self.is_active,
        }
