from fantasy import db  # noqa: F401 - imported for model imports

from .group import Group
from .group_member import GroupMember
from .match import Match
from .prediction import Prediction
from .team import Team
from .tournament import Tournament
from .user import User

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "Tournament",
    "Team",
    "Match",
    "Prediction",
]
