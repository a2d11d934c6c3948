from datetime import timedelta

import pytest

from fantasy import db
from fantasy.models import Match, Prediction
from tests.conftest import utcnow


@pytest.fixture
def alice(make_user):
    return make_user("alice", first_name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob", first_name="Bob")


@pytest.fixture
def admin(make_user):
    return make_user("admin", is_admin=True)


@pytest.fixture
def group(make_group, alice, bob):
    return make_group(alice, members=[bob])


def test_login_and_me(app, alice):
    client = app.test_client()

    response = client.post(
        "/auth/login", json={"username": "alice", "password": "secret"}
    )
    assert response.status_code == 200
    assert response.get_json()["user"]["username"] == "alice"

    assert client.get("/auth/me").get_json()["full_name"] == "Alice"


def test_login_with_wrong_password(app, alice):
    response = app.test_client().post(
        "/auth/login", json={"username": "alice", "password": "nope"}
    )
    assert response.status_code == 401


def test_api_requires_login(app):
    response = app.test_client().get("/api/matches/1")

    assert response.status_code == 401
    assert response.get_json() == {"error": "Authentication required"}


def test_match_detail(app, alice, make_match):
    match = make_match(goals_local=2, goals_visitor=0)

    data = app.test_client(user=alice).get(f"/api/matches/{match.id}").get_json()

    assert data["status"] == "local_win"
    assert data["local"]["name"] == "Argentina"


def test_missing_match(app, alice):
    response = app.test_client(user=alice).get("/api/matches/999")
    assert response.status_code == 404


def test_prediction_hidden_from_other_members(app, alice, bob, group, make_match, make_prediction):
    match = make_match()
    prediction = make_prediction(alice, group, match, 2, 1)

    own = app.test_client(user=alice).get(f"/api/predictions/{prediction.id}")
    other = app.test_client(user=bob).get(f"/api/predictions/{prediction.id}")

    assert own.get_json()["goals_local"] == 2
    assert own.get_json()["is_locked"] is False
    assert other.status_code == 200
    assert other.get_json()["goals_local"] is None
    assert other.get_json()["goals_visitor"] is None


def test_prediction_visible_close_to_kickoff(app, alice, bob, group, make_match, make_prediction):
    match = make_match(date=utcnow() + timedelta(minutes=5))
    prediction = make_prediction(alice, group, match, 2, 1)

    data = app.test_client(user=bob).get(f"/api/predictions/{prediction.id}").get_json()

    assert data["goals_local"] == 2
    assert data["is_locked"] is True


def test_prediction_of_foreign_group(app, alice, make_user, make_group, make_match, make_prediction):
    carol = make_user("carol")
    other_group = make_group(carol, name="Other")
    prediction = make_prediction(carol, other_group, make_match(), 1, 1)

    response = app.test_client(user=alice).get(f"/api/predictions/{prediction.id}")
    assert response.status_code == 403


def test_match_predictions_disclosure(app, alice, bob, group, make_match, make_prediction):
    match = make_match()
    make_prediction(alice, group, match, 1, 0)
    make_prediction(bob, group, match, 0, 0)

    data = app.test_client(user=bob).get(
        f"/api/groups/{group.id}/matches/{match.id}/predictions"
    ).get_json()

    goals = {entry["user"]["username"]: entry["goals_local"] for entry in data}
    assert goals == {"alice": None, "bob": 0}


def test_create_prediction(app, alice, group, make_match):
    match = make_match()

    response = app.test_client(user=alice).post(
        "/api/predictions",
        json={"group_id": group.id, "match_id": match.id, "goals_local": 3, "goals_visitor": 1},
    )

    assert response.status_code == 201
    assert response.get_json()["prediction"]["goals_local"] == 3


def test_create_locked_prediction(app, alice, group, make_match):
    match = make_match(date=utcnow() - timedelta(minutes=1))

    response = app.test_client(user=alice).post(
        "/api/predictions",
        json={"group_id": group.id, "match_id": match.id, "goals_local": 3, "goals_visitor": 1},
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Prediction is locked"


@pytest.mark.parametrize("goals", [-1, "2", None, True])
def test_create_prediction_with_bad_goals(app, alice, group, make_match, goals):
    match = make_match()

    response = app.test_client(user=alice).post(
        "/api/predictions",
        json={"group_id": group.id, "match_id": match.id, "goals_local": goals, "goals_visitor": 1},
    )

    assert response.status_code == 400


def test_update_prediction(app, alice, group, make_match, make_prediction):
    prediction = make_prediction(alice, group, make_match())

    response = app.test_client(user=alice).put(
        f"/api/predictions/{prediction.id}", json={"goals_local": 0, "goals_visitor": 0}
    )

    assert response.status_code == 200
    assert response.get_json()["prediction"]["goals_visitor"] == 0


def test_update_someone_elses_prediction(app, alice, bob, group, make_match, make_prediction):
    prediction = make_prediction(alice, group, make_match())

    response = app.test_client(user=bob).put(
        f"/api/predictions/{prediction.id}", json={"goals_local": 0, "goals_visitor": 0}
    )

    assert response.status_code == 403


def test_create_and_join_group(app, alice, bob, tournament, make_match):
    make_match()

    created = app.test_client(user=alice).post(
        "/api/groups", json={"name": "Weekend", "tournament_id": tournament.id}
    )
    assert created.status_code == 201
    code = created.get_json()["group"]["code"]

    joined = app.test_client(user=bob).post("/api/groups/join", json={"code": code})
    assert joined.status_code == 200
    assert joined.get_json()["group"]["member_count"] == 2


def test_join_unknown_group(app, bob):
    response = app.test_client(user=bob).post("/api/groups/join", json={"code": "NOPE00"})
    assert response.status_code == 404


def test_group_detail_for_non_member(app, make_user, group):
    response = app.test_client(user=make_user("mallory")).get(f"/api/groups/{group.id}")
    assert response.status_code == 403


def test_sync_group(app, alice, group, make_match):
    make_match()
    make_match()
    client = app.test_client(user=alice)

    assert client.post(f"/api/groups/{group.id}/sync").get_json()["created"] == 4
    assert client.post(f"/api/groups/{group.id}/sync").get_json()["created"] == 0

    predictions = client.get(f"/api/groups/{group.id}/predictions").get_json()
    assert len(predictions) == 2
    assert all(p["is_locked"] is False for p in predictions)


def test_record_result_requires_admin(app, alice, make_match):
    match = make_match()

    response = app.test_client(user=alice).put(
        f"/api/matches/{match.id}/result",
        json={"goals_local": 1, "goals_visitor": 0, "is_closed": True},
    )

    assert response.status_code == 403


def test_close_match_updates_positions(app, admin, alice, bob, group, make_match, make_prediction):
    match = make_match(date=utcnow() - timedelta(hours=2))
    make_prediction(alice, group, match, 1, 0)
    make_prediction(bob, group, match, 3, 1)

    response = app.test_client(user=admin).put(
        f"/api/matches/{match.id}/result",
        json={"goals_local": 1, "goals_visitor": 0, "is_closed": True},
    )
    assert response.status_code == 200
    assert response.get_json()["match"]["is_closed"] is True

    data = app.test_client(user=alice).get(f"/api/groups/{group.id}/positions").get_json()
    assert [(p["user"]["username"], p["points"]) for p in data["positions"]] == [
        ("alice", 10),
        ("bob", 5),
    ]

    balance = app.test_client(user=bob).get(
        f"/api/groups/{group.id}/balance?user_id={alice.id}"
    ).get_json()
    assert balance["points"] == 10


def test_close_match_without_result(app, admin, make_match):
    match = make_match()

    response = app.test_client(user=admin).post(f"/api/matches/{match.id}/close")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Match has no final score"
    assert not db.session.get(Match, match.id).is_closed


def test_close_match_endpoint(app, admin, alice, group, make_match, make_prediction):
    match = make_match(goals_local=0, goals_visitor=0)
    prediction = make_prediction(alice, group, match, 0, 0)

    response = app.test_client(user=admin).post(f"/api/matches/{match.id}/close")

    assert response.status_code == 200
    assert db.session.get(Prediction, prediction.id).points == 10


def test_partial_result_update_keeps_score(app, admin, alice, group, make_match, make_prediction):
    match = make_match(goals_local=2, goals_visitor=1)
    client = app.test_client(user=admin)

    response = client.put(f"/api/matches/{match.id}/result", json={"double_points": True})

    data = response.get_json()["match"]
    assert (data["goals_local"], data["goals_visitor"]) == (2, 1)
    assert data["double_points"] is True
    assert data["is_closed"] is False


def test_double_points_on_closed_match_rescores(app, admin, alice, group, make_match, make_prediction):
    match = make_match(date=utcnow() - timedelta(hours=2))
    prediction = make_prediction(alice, group, match, 2, 1)
    client = app.test_client(user=admin)
    client.put(
        f"/api/matches/{match.id}/result",
        json={"goals_local": 2, "goals_visitor": 1, "is_closed": True},
    )

    response = client.put(f"/api/matches/{match.id}/result", json={"double_points": True})

    data = response.get_json()["match"]
    assert (data["goals_local"], data["goals_visitor"]) == (2, 1)
    assert data["is_closed"] is True
    assert db.session.get(Prediction, prediction.id).points == 20


def test_result_for_missing_match(app, admin):
    response = app.test_client(user=admin).put(
        "/api/matches/999/result", json={"goals_local": 1, "goals_visitor": 0}
    )
    assert response.status_code == 404
