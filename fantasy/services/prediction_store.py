"""
Database access used by PredictionService

PredictionService only talks to storage through this class, so tests can hand
it an in-memory stand-in with the same methods.
"""

from fantasy import db
from fantasy.models import (
    Group,
    GroupMember,
    Match,
    Prediction,
    Tournament,
    User,
)


class PredictionStore:
    """Flask-SQLAlchemy backed store"""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    # Lookups

    def get_user(self, user_id):
        return self.session.get(User, user_id)

    def get_match(self, match_id):
        return self.session.get(Match, match_id)

    def get_tournament(self, tournament_id):
        return self.session.get(Tournament, tournament_id)

    def get_group(self, group_id):
        return self.session.get(Group, group_id)

    def get_group_by_code(self, code):
        return self.session.query(Group).filter_by(code=code).first()

    def get_prediction(self, prediction_id):
        return self.session.get(Prediction, prediction_id)

    def find_prediction(self, group_id, match_id, user_id):
        return (
            self.session.query(Prediction)
            .filter_by(group_id=group_id, match_id=match_id, user_id=user_id)
            .first()
        )

    def get_predictions_for_match(self, match_id):
        """Every prediction of a match, across all groups"""
        return self.session.query(Prediction).filter_by(match_id=match_id).all()

    def get_active_members(self, group_id):
        return (
            self.session.query(GroupMember)
            .filter_by(group_id=group_id, is_active=True)
            .all()
        )

    def get_matches_for_tournament(self, tournament_id):
        return (
            self.session.query(Match)
            .filter_by(tournament_id=tournament_id)
            .order_by(Match.date)
            .all()
        )

    def get_prediction_keys(self, group_id):
        """(match_id, user_id) pairs that already have a prediction in the group"""
        rows = (
            self.session.query(Prediction.match_id, Prediction.user_id)
            .filter_by(group_id=group_id)
            .all()
        )
        return {(match_id, user_id) for match_id, user_id in rows}

    def get_closed_matches(self):
        return (
            self.session.query(Match)
            .filter(
                Match.is_closed.is_(True),
                Match.goals_local.isnot(None),
                Match.goals_visitor.isnot(None),
            )
            .order_by(Match.date)
            .all()
        )

    def get_active_groups(self):
        return self.session.query(Group).filter_by(is_active=True).all()

    def get_balance(self, group_id, user_id):
        """A member's predictions for matches that already have a result"""
        return (
            self.session.query(Prediction)
            .join(Match, Prediction.match_id == Match.id)
            .filter(
                Prediction.group_id == group_id,
                Prediction.user_id == user_id,
                Match.goals_local.isnot(None),
                Match.goals_visitor.isnot(None),
            )
            .order_by(Match.date)
            .all()
        )

    # Unit of work

    def add(self, instance):
        self.session.add(instance)

    def add_all(self, instances):
        self.session.add_all(instances)

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
