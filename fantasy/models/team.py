from fantasy import db


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    image = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    local_matches = db.relationship(
        "Match",
        foreign_keys="Match.local_id",
        backref=db.backref("local", lazy="joined"),
        lazy="dynamic",
    )
    visitor_matches = db.relationship(
        "Match",
        foreign_keys="Match.visitor_id",
        backref=db.backref("visitor", lazy="joined"),
        lazy="dynamic",
    )

    def __repr__(self):
        return f"<Team {self.name}>"

    def to_dict(self):
        return {"id": self.id, "name": self.name, "image": self.image}
