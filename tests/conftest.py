from datetime import datetime, timedelta, timezone

import pytest
from flask import g
from flask_login import FlaskLoginClient

from fantasy import create_app, db
from fantasy.models import (
    Group,
    GroupMember,
    Match,
    Prediction,
    Team,
    Tournament,
    User,
)


def utcnow():
    """Naive UTC, the way kick-off times are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LoginClient(FlaskLoginClient):
    """Test client that loads its own user on every request

    The app context stays open for the whole test, so the user Flask-Login
    cached in `g` by the previous request has to go.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def app():
    app = create_app("testing")
    app.test_client_class = LoginClient

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(username=None, password="secret", **kwargs):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(username=username, email=f"{username}@example.com", **kwargs)
        user.set_password(password)
        session.add(user)
        session.commit()
        return user

    return _make_user


@pytest.fixture
def tournament(session):
    tournament = Tournament(name="World Cup", is_active=True)
    session.add(tournament)
    session.commit()
    return tournament


@pytest.fixture
def teams(session):
    teams = [Team(name=name) for name in ("Argentina", "Brazil", "Chile", "Peru")]
    session.add_all(teams)
    session.commit()
    return teams


@pytest.fixture
def make_match(session, tournament, teams):
    def _make_match(date=None, goals_local=None, goals_visitor=None, **kwargs):
        match = Match(
            tournament_id=tournament.id,
            local_id=kwargs.pop("local_id", teams[0].id),
            visitor_id=kwargs.pop("visitor_id", teams[1].id),
            date=date or utcnow() + timedelta(days=1),
            goals_local=goals_local,
            goals_visitor=goals_visitor,
            **kwargs,
        )
        session.add(match)
        session.commit()
        return match

    return _make_match


@pytest.fixture
def make_group(session, tournament):
    def _make_group(admin, members=(), name="Office Pool", **kwargs):
        group = Group(
            name=name,
            admin_id=admin.id,
            tournament_id=kwargs.pop("tournament_id", tournament.id),
            is_active=True,
            **kwargs,
        )
        session.add(group)
        for user in (admin, *members):
            session.add(GroupMember(user_id=user.id, group=group, is_active=True))
        session.commit()
        return group

    return _make_group


@pytest.fixture
def make_prediction(session):
    def _make_prediction(user, group, match, goals_local=None, goals_visitor=None):
        prediction = Prediction(
            user_id=user.id,
            group_id=group.id,
            match_id=match.id,
            tournament_id=match.tournament_id,
            goals_local=goals_local,
            goals_visitor=goals_visitor,
        )
        session.add(prediction)
        session.commit()
        return prediction

    return _make_prediction
