import secrets
from datetime import datetime, timezone

from fantasy import db


class Group(db.Model):
    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    remarks = db.Column(db.Text)
    image = db.Column(db.String(500))

    # Group code for joining
    code = db.Column(db.String(6), unique=True, nullable=False, index=True)

    is_active = db.Column(db.Boolean, default=True)

    # Admin, tournament and timestamps
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    tournament_id = db.Column(
        db.Integer, db.ForeignKey("tournaments.id"), nullable=False
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    members = db.relationship(
        "GroupMember", backref="group", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_group_admin", "admin_id"),
        db.Index("idx_group_tournament", "tournament_id"),
    )

    def __repr__(self):
        return f"<Group {self.name}>"

    def __init__(self, **kwargs):
        super(Group, self).__init__(**kwargs)
        if not self.code:
            self.code = self.generate_code()

    @staticmethod
    def generate_code():
        """Generate a unique 6-character join code"""
        while True:
            code = secrets.token_hex(3).upper()
            if not Group.query.filter_by(code=code).first():
                return code

    def get_active_members(self):
        """Get all active members of the group"""
        from sqlalchemy.orm import joinedload

        from .group_member import GroupMember

        return (
            self.members.filter_by(is_active=True)
            .options(joinedload(GroupMember.user))
            .all()
        )

    def is_user_member(self, user_id):
        """Check if user is an active member"""
        return (
            self.members.filter_by(user_id=user_id, is_active=True).first() is not None
        )

    def is_user_admin(self, user_id):
        return self.admin_id == user_id

    def add_member(self, user):
        """Add a user to the group"""
        from .group_member import GroupMember

        existing = self.members.filter_by(user_id=user.id).first()
        if existing:
            if existing.is_active:
                return None, "User is already a member"
            existing.reactivate()
            return existing, "Membership reactivated"

        membership = GroupMember(user=user, group=self, is_active=True)
        db.session.add(membership)
        return membership, "User added successfully"

    def get_positions(self):
        """Sum of points per active member, highest first"""
        from .group_member import GroupMember
        from .prediction import Prediction
        from .user import User

        total = db.func.coalesce(db.func.sum(Prediction.points), 0)
        rows = (
            db.session.query(User, total.label("points"))
            .join(GroupMember, GroupMember.user_id == User.id)
            .outerjoin(
                Prediction,
                db.and_(
                    Prediction.user_id == User.id, Prediction.group_id == self.id
                ),
            )
            .filter(GroupMember.group_id == self.id, GroupMember.is_active.is_(True))
            .group_by(User.id)
            .order_by(total.desc(), User.first_name, User.last_name, User.username)
            .all()
        )

        return [
            {"position": index, "user": user, "points": int(points)}
            for index, (user, points) in enumerate(rows, start=1)
        ]

    def to_dict(self, include_members=False):
        """Convert group to dictionary for API responses"""
        data = {
            "id": self.id,
            "name": self.name,
            "remarks": self.remarks,
            "code": self.code,
            "is_active": self.is_active,
            "admin_id": self.admin_id,
            "tournament_id": self.tournament_id,
            "tournament": self.tournament.to_dict() if self.tournament else None,
            "member_count": self.members.filter_by(is_active=True).count(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

        if include_members:
            data["members"] = [member.to_dict() for member in self.get_active_members()]

        return data
