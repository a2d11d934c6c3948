from datetime import datetime, timezone

from fantasy import db


class Match(db.Model):
    __tablename__ = "matches"

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(
        db.Integer, db.ForeignKey("tournaments.id"), nullable=False
    )

    # Teams
    local_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    visitor_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)

    # Kick-off, stored as naive UTC
    date = db.Column(db.DateTime, nullable=False)

    # Final score (None until played)
    goals_local = db.Column(db.Integer)
    goals_visitor = db.Column(db.Integer)

    # Match settings and status
    double_points = db.Column(db.Boolean, default=False, nullable=False)
    is_closed = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    predictions = db.relationship("Prediction", backref="match", lazy="dynamic")

    __table_args__ = (
        db.Index("idx_match_tournament_date", "tournament_id", "date"),
        db.CheckConstraint("local_id != visitor_id", name="different_teams"),
    )

    def __repr__(self):
        local = self.local.name if self.local else "TBD"
        visitor = self.visitor.name if self.visitor else "TBD"
        return f"<Match {local} vs {visitor}>"

    @property
    def has_result(self):
        """Both final goal counts are recorded"""
        return self.goals_local is not None and self.goals_visitor is not None

    @property
    def status(self):
        """Outcome of the match, None while it has no result"""
        if not self.has_result:
            return None

        from fantasy.utils.scoring import get_match_status

        return get_match_status(self.goals_local, self.goals_visitor)

    def has_started(self, now=None):
        """Check if the match has kicked off"""
        from fantasy.utils.timezone_utils import ensure_utc, get_utc_time

        if not self.date:
            return False
        now = now or get_utc_time()
        return now >= ensure_utc(self.date)

    def set_result(self, goals_local, goals_visitor, is_closed=False):
        """Record the score; points are recomputed by PredictionService.close_match"""
        self.goals_local = goals_local
        self.goals_visitor = goals_visitor
        self.is_closed = is_closed

    def format_date_local(self, format_str="%a %m/%d at %I:%M %p"):
        """Format kick-off in the application's timezone"""
        from fantasy.utils.timezone_utils import format_match_time

        return format_match_time(self.date, format_str)

    def to_dict(self):
        """Convert match to dictionary for API responses"""
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "date": self.date.isoformat() if self.date else None,
            "local_date": self.format_date_local(),
            "local": self.local.to_dict() if self.local else None,
            "visitor": self.visitor.to_dict() if self.visitor else None,
            "goals_local": self.goals_local,
            "goals_visitor": self.goals_visitor,
            "double_points": self.double_points,
            "is_closed": self.is_closed,
            "is_active": self.is_active,
            "status": self.status.value if self.status else None,
            "has_started": self.has_started(),
        }
