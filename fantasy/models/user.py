from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from fantasy import db, login_manager


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")

    # Profile information
    first_name = db.Column(db.String(50))
    last_name = db.Column(db.String(50))
    photo = db.Column(db.String(500))

    # Account status
    is_active = db.Column(db.Boolean, default=True)
    is_admin = db.Column(db.Boolean, default=False)  # Site-wide admin privileges

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    last_login = db.Column(db.DateTime)

    # Relationships
    predictions = db.relationship("Prediction", backref="user", lazy="dynamic")
    group_memberships = db.relationship(
        "GroupMember", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    administered_groups = db.relationship("Group", backref="admin", lazy="dynamic")

    def __repr__(self):
        return f"<User {self.username}>"

    @property
    def full_name(self):
        """Return full name, falling back to username"""
        names = [name for name in (self.first_name, self.last_name) if name]
        return " ".join(names) if names else self.username

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        return bool(self.password_hash) and check_password_hash(
            self.password_hash, password
        )

    def update_last_login(self):
        self.last_login = datetime.now(timezone.utc)

    def get_groups(self):
        """Get active group memberships"""
        return self.group_memberships.filter_by(is_active=True).all()

    def to_dict(self):
        """Convert user to dictionary for API responses"""
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "photo": self.photo,
        }


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
