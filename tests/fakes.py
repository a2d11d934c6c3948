"""
In-memory stand-in for PredictionStore
"""

from sqlalchemy.exc import OperationalError


class InMemoryPredictionStore:
    def __init__(self, fail_on_commit=False):
        self.users = {}
        self.groups = {}
        self.tournaments = {}
        self.matches = {}
        self.members = []
        self.predictions = []
        self.pending = []
        self.fail_on_commit = fail_on_commit
        self.commits = 0
        self.rollbacks = 0
        self._next_id = 1000

    # Seeding helpers

    def put(self, instance):
        """Register a model instance under its table"""
        table = {
            "users": self.users,
            "groups": self.groups,
            "tournaments": self.tournaments,
            "matches": self.matches,
        }.get(instance.__tablename__)

        if table is not None:
            table[instance.id] = instance
        elif instance.__tablename__ == "group_members":
            self.members.append(instance)
        else:
            self.predictions.append(instance)
        return instance

    # Lookups

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_match(self, match_id):
        return self.matches.get(match_id)

    def get_tournament(self, tournament_id):
        return self.tournaments.get(tournament_id)

    def get_group(self, group_id):
        return self.groups.get(group_id)

    def get_group_by_code(self, code):
        return next((g for g in self.groups.values() if g.code == code), None)

    def get_prediction(self, prediction_id):
        return next((p for p in self.predictions if p.id == prediction_id), None)

    def find_prediction(self, group_id, match_id, user_id):
        return next(
            (
                p
                for p in self.predictions
                if (p.group_id, p.match_id, p.user_id) == (group_id, match_id, user_id)
            ),
            None,
        )

    def get_predictions_for_match(self, match_id):
        return [p for p in self.predictions if p.match_id == match_id]

    def get_active_members(self, group_id):
        return [m for m in self.members if m.group_id == group_id and m.is_active]

    def get_matches_for_tournament(self, tournament_id):
        return sorted(
            (m for m in self.matches.values() if m.tournament_id == tournament_id),
            key=lambda m: m.date,
        )

    def get_prediction_keys(self, group_id):
        return {(p.match_id, p.user_id) for p in self.predictions if p.group_id == group_id}

    def get_closed_matches(self):
        return [
            m
            for m in self.matches.values()
            if m.is_closed and m.goals_local is not None and m.goals_visitor is not None
        ]

    def get_active_groups(self):
        return [g for g in self.groups.values() if g.is_active]

    def get_balance(self, group_id, user_id):
        return [
            p
            for p in self.predictions
            if p.group_id == group_id
            and p.user_id == user_id
            and self.matches[p.match_id].goals_local is not None
            and self.matches[p.match_id].goals_visitor is not None
        ]

    # Unit of work

    def add(self, instance):
        self.pending.append(instance)

    def add_all(self, instances):
        self.pending.extend(instances)

    def commit(self):
        if self.fail_on_commit:
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        for instance in self.pending:
            if instance.__tablename__ == "predictions":
                if instance.id is None:
                    instance.id = self._next_id
                    self._next_id += 1
                self.predictions.append(instance)
            else:
                self.put(instance)
        self.pending = []
        self.commits += 1

    def rollback(self):
        self.pending = []
        self.rollbacks += 1
