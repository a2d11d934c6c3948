"""
Prediction lifecycle service

Closing matches (scoring every prediction of a match in one commit), keeping
one prediction row per member and match in each group, and the prediction,
group and match-result operations built on top of those two.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fantasy.models import Group, GroupMember, Prediction
from fantasy.services.prediction_store import PredictionStore
from fantasy.utils.scoring import calculate_prediction_points
from fantasy.utils.visibility import can_watch, is_match_watchable

logger = logging.getLogger(__name__)


class PredictionService:
    """Scores, synchronizes and guards predictions"""

    def __init__(self, store=None):
        self.store = store or PredictionStore()

    def close_match(self, match):
        """
        Recalculate points of every prediction for a match and mark it closed.

        All predictions are saved in a single commit. Running it again on an
        unchanged score gives the same points.

        Returns:
            tuple: (success, message)
        """
        if match.goals_local is None or match.goals_visitor is None:
            return False, "Match has no final score"

        predictions = self.store.get_predictions_for_match(match.id)
        for prediction in predictions:
            prediction.points = calculate_prediction_points(prediction, match)
        match.is_closed = True

        try:
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to save points for match {match.id}: {e}")
            return False, "Could not save prediction points"

        logger.info(
            f"Closed match {match.id} ({match.goals_local}-{match.goals_visitor}): "
            f"scored {len(predictions)} predictions"
        )
        return True, f"Scored {len(predictions)} predictions"

    def synchronize_group_predictions(self, group_id):
        """
        Create an empty prediction for every active member and tournament match
        of a group that does not have one yet.

        A missing group, tournament or an empty fixture list is a no-op.
        Storage errors are rolled back and re-raised.

        Returns:
            list: the predictions that were created
        """
        group = self.store.get_group(group_id)
        if group is None:
            logger.debug(f"Skipping prediction sync: group {group_id} not found")
            return []

        tournament = self.store.get_tournament(group.tournament_id)
        if tournament is None:
            logger.debug(
                f"Skipping prediction sync: tournament {group.tournament_id} not found"
            )
            return []

        matches = self.store.get_matches_for_tournament(tournament.id)
        if not matches:
            return []

        members = self.store.get_active_members(group.id)
        existing = self.store.get_prediction_keys(group.id)

        created = []
        for member in members:
            for match in matches:
                key = (match.id, member.user_id)
                if key in existing:
                    continue

                created.append(
                    Prediction(
                        group_id=group.id,
                        match_id=match.id,
                        tournament_id=tournament.id,
                        user_id=member.user_id,
                    )
                )
                existing.add(key)

        if not created:
            return []

        self.store.add_all(created)
        try:
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to create predictions for group {group.id}: {e}")
            raise

        logger.info(f"Created {len(created)} predictions for group {group.id}")
        return created

    def record_match_result(
        self, match_id, goals_local, goals_visitor, is_closed=False, double_points=None
    ):
        """
        Store a match score. Closing the match scores its predictions.

        Returns:
            tuple: (match or None, message)
        """
        match = self.store.get_match(match_id)
        if match is None:
            return None, "Match not found"

        was_closed = match.is_closed
        if double_points is not None:
            match.double_points = double_points
        match.set_result(goals_local, goals_visitor, is_closed=is_closed)

        if is_closed:
            success, message = self.close_match(match)
            if not success:
                self.store.rollback()
                return None, message
            return match, message

        if was_closed:
            # Reopened: points wait for the next closure
            for prediction in self.store.get_predictions_for_match(match.id):
                prediction.points = None
            logger.info(f"Match {match.id} reopened, prediction points cleared")

        try:
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to save result for match {match_id}: {e}")
            return None, "Could not save match result"

        return match, "Match result saved"

    def rescore_closed_matches(self):
        """Recalculate points of every closed match, e.g. after a rule change"""
        scored = 0
        failed = 0
        for match in self.store.get_closed_matches():
            success, message = self.close_match(match)
            if success:
                scored += 1
            else:
                failed += 1
                logger.warning(f"Rescoring match {match.id} failed: {message}")
        return scored, failed

    def add_prediction(
        self, user_id, group_id, match_id, goals_local, goals_visitor, now=None
    ):
        """
        Submit a prediction for a match

        Returns:
            tuple: (prediction or None, message)
        """
        user = self.store.get_user(user_id)
        if user is None:
            return None, "User not found"

        group = self.store.get_group(group_id)
        if group is None:
            return None, "Group not found"

        tournament = self.store.get_tournament(group.tournament_id)
        if tournament is None:
            return None, "Tournament not found"

        match = self.store.get_match(match_id)
        if match is None:
            return None, "Match not found"

        if match.tournament_id != tournament.id:
            return None, "Match does not belong to the group's tournament"

        if self.store.find_prediction(group.id, match.id, user.id) is not None:
            return None, "Prediction already exists"

        if is_match_watchable(match, now=now):
            return None, "Prediction is locked"

        prediction = Prediction(
            group_id=group.id,
            match_id=match.id,
            tournament_id=tournament.id,
            user_id=user.id,
            goals_local=goals_local,
            goals_visitor=goals_visitor,
        )

        self.store.add(prediction)
        try:
            self.store.commit()
        except IntegrityError:
            self.store.rollback()
            return None, "Prediction already exists"
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to save prediction for match {match.id}: {e}")
            return None, "Could not save prediction"

        return prediction, "Prediction created successfully"

    def update_prediction(self, prediction_id, goals_local, goals_visitor, now=None):
        """
        Change the predicted goals while the prediction is still hidden

        Returns:
            tuple: (prediction or None, message)
        """
        prediction = self.store.get_prediction(prediction_id)
        if prediction is None:
            return None, "Prediction not found"

        if can_watch(prediction, now=now):
            return None, "Prediction is locked"

        prediction.goals_local = goals_local
        prediction.goals_visitor = goals_visitor

        try:
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to update prediction {prediction_id}: {e}")
            return None, "Could not save prediction"

        return prediction, "Prediction updated successfully"

    def create_group(self, admin_id, tournament_id, name, remarks=None):
        """
        Create a group with its admin as first member

        Returns:
            tuple: (group or None, message)
        """
        admin = self.store.get_user(admin_id)
        if admin is None:
            return None, "User not found"

        tournament = self.store.get_tournament(tournament_id)
        if tournament is None:
            return None, "Tournament not found"

        group = Group(
            name=name,
            remarks=remarks,
            admin_id=admin.id,
            tournament_id=tournament.id,
            is_active=True,
        )
        self.store.add(group)
        self.store.add(GroupMember(user_id=admin.id, group=group, is_active=True))

        try:
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to create group {name!r}: {e}")
            return None, "Could not create group"

        logger.info(f"Group {group.id} created by user {admin.id} (code {group.code})")
        self._synchronize_after_membership(group)
        return group, "Group created successfully"

    def join_group(self, user_id, code):
        """
        Join a group by its code and get a prediction row for every match

        Returns:
            tuple: (membership or None, message)
        """
        user = self.store.get_user(user_id)
        if user is None:
            return None, "User not found"

        group = self.store.get_group_by_code((code or "").strip().upper())
        if group is None:
            return None, "Group not found"

        if not group.is_active:
            return None, "Group is not active"

        membership, message = group.add_member(user)
        if membership is None:
            return None, message

        try:
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            logger.error(f"Failed to add user {user.id} to group {group.id}: {e}")
            return None, "Could not join group"

        self._synchronize_after_membership(group)
        return membership, message

    def _synchronize_after_membership(self, group):
        """The membership is already saved; a later sync fills any gap"""
        try:
            self.synchronize_group_predictions(group.id)
        except SQLAlchemyError:
            logger.warning(f"Predictions for group {group.id} left for the next sync")

    def get_positions(self, group_id):
        """Leaderboard of a group, None when the group does not exist"""
        group = self.store.get_group(group_id)
        if group is None:
            return None
        return group.get_positions()

    def get_balance(self, group_id, user_id):
        """A member's scored predictions in a group"""
        return self.store.get_balance(group_id, user_id)
