from datetime import datetime, timezone

from fantasy import db


class Prediction(db.Model):
    __tablename__ = "predictions"

    id = db.Column(db.Integer, primary_key=True)

    # Prediction identification
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id"), nullable=False)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id"), nullable=False)
    tournament_id = db.Column(
        db.Integer, db.ForeignKey("tournaments.id"), nullable=False
    )

    # Predicted score (None until submitted)
    goals_local = db.Column(db.Integer)
    goals_visitor = db.Column(db.Integer)

    # Result (calculated when the match closes)
    points = db.Column(db.Integer)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    group = db.relationship("Group", foreign_keys=[group_id])
    tournament = db.relationship("Tournament", foreign_keys=[tournament_id])

    # Constraints and indexes
    __table_args__ = (
        db.UniqueConstraint(
            "group_id", "match_id", "user_id", name="unique_group_match_user_prediction"
        ),
        db.Index("idx_prediction_match", "match_id"),
        db.Index("idx_prediction_group_user", "group_id", "user_id"),
    )

    def __repr__(self):
        return f"<Prediction user_id={self.user_id} match_id={self.match_id} group_id={self.group_id}>"

    def can_watch(self, now=None):
        """Whether goals may be disclosed to other members (and no longer edited)"""
        from fantasy.utils.visibility import can_watch

        return can_watch(self, now=now)

    def to_dict(self, reveal=True):
        """Convert prediction to dictionary for API responses

        Args:
            reveal: include predicted goals and points. Callers pass False when
                another member asks for a prediction that cannot be watched yet.
        """
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "match_id": self.match_id,
            "group_id": self.group_id,
            "tournament_id": self.tournament_id,
            "goals_local": None,
            "goals_visitor": None,
            "points": None,
            "match": self.match.to_dict() if self.match else None,
        }

        if reveal:
            data["goals_local"] = self.goals_local
            data["goals_visitor"] = self.goals_visitor
            data["points"] = self.points

        return data
