"""HTTP surface: auth, waitlist and the objective flow end to end."""

from datetime import timedelta

from telofy.core.timeutils import utcnow
from telofy.services.user_auth import user_auth_service

from conftest import PASSWORD


class CapturingSender:
    def __init__(self):
        self.links = []

    def send(self, user, reset_link):
        self.links.append(reset_link)


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAuth:
    def test_register_login_me(self, client, auth_headers):
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["email"] == "ada@example.com"
        assert response.json()["timezone"] == "UTC"

    def test_duplicate_registration(self, client, auth_headers):
        response = client.post(
            "/auth/register",
            json={"name": "Ada", "email": "ADA@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409

    def test_weak_password_rejected(self, client):
        response = client.post(
            "/auth/register", json={"name": "Bo", "email": "bo@example.com", "password": "password"}
        )
        assert response.status_code == 422

    def test_unknown_timezone_rejected(self, client, auth_headers):
        response = client.put("/auth/me", json={"timezone": "Mars/Olympus"}, headers=auth_headers)
        assert response.status_code == 422

    def test_wrong_password(self, client, auth_headers):
        response = client.post("/auth/login", json={"email": "ada@example.com", "password": "Wr0ngpass"})
        assert response.status_code == 401

    def test_bad_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_refresh(self, client, auth_headers):
        login = client.post("/auth/login", json={"email": "ada@example.com", "password": PASSWORD})
        response = client.post("/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_access_token_is_not_a_refresh_token(self, client, auth_headers):
        access = auth_headers["Authorization"].split()[1]
        response = client.post("/auth/refresh", json={"refresh_token": access})
        assert response.status_code == 401

    def test_change_password(self, client, auth_headers):
        response = client.put(
            "/auth/me/password",
            json={"old_password": PASSWORD, "new_password": "N3wPassword"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        login = client.post("/auth/login", json={"email": "ada@example.com", "password": "N3wPassword"})
        assert login.status_code == 200

    def test_password_reset_is_single_use(self, client, auth_headers, monkeypatch):
        sender = CapturingSender()
        monkeypatch.setattr(user_auth_service, "reset_sender", sender)

        response = client.post("/auth/password-reset/request", json={"email": "ada@example.com"})
        assert response.status_code == 200
        token = sender.links[0].split("token=")[1]

        payload = {"token": token, "new_password": "Res3tPassword"}
        assert client.post("/auth/password-reset/confirm", json=payload).status_code == 200
        assert client.post("/auth/password-reset/confirm", json=payload).status_code == 401

        login = client.post("/auth/login", json={"email": "ada@example.com", "password": "Res3tPassword"})
        assert login.status_code == 200

    def test_password_reset_unknown_email_still_succeeds(self, client, monkeypatch):
        sender = CapturingSender()
        monkeypatch.setattr(user_auth_service, "reset_sender", sender)

        response = client.post("/auth/password-reset/request", json={"email": "nobody@example.com"})
        assert response.status_code == 200
        assert sender.links == []

    def test_delete_account(self, client, auth_headers):
        assert client.delete("/auth/me", headers=auth_headers).status_code == 200
        assert client.get("/auth/me", headers=auth_headers).status_code == 401


class TestWaitlist:
    def test_join_then_conflict(self, client):
        assert client.post("/waitlist", json={"email": "Early@Example.com"}).status_code == 201
        assert client.post("/waitlist", json={"email": "early@example.com"}).status_code == 409

    def test_invalid_email(self, client):
        assert client.post("/waitlist", json={"email": "not-an-email"}).status_code == 422


class TestObjectiveFlow:
    def create_objective(self, client, headers, pillars=None):
        return client.post(
            "/objectives",
            json={
                "name": "Get Promoted",
                "category": "career",
                "pillars": pillars
                if pillars is not None
                else [{"name": "Skills", "weight": 0.6}, {"name": "Network", "weight": 0.4}],
            },
            headers=headers,
        )

    def test_requires_auth(self, client):
        assert client.get("/objectives").status_code in (401, 403)

    def test_create_and_progress(self, client, auth_headers):
        response = self.create_objective(client, auth_headers)
        assert response.status_code == 201
        objective = response.json()
        assert len(objective["pillars"]) == 2

        progress = client.get(f"/objectives/{objective['id']}/progress", headers=auth_headers).json()
        assert progress["overall_progress"] == 0.0
        assert progress["weights_normalized"] is True

    def test_inline_weights_must_sum_to_one(self, client, auth_headers):
        response = self.create_objective(
            client, auth_headers, pillars=[{"name": "A", "weight": 0.5}, {"name": "B", "weight": 0.4}]
        )
        assert response.status_code == 422

    def test_added_pillar_cannot_overflow_weights(self, client, auth_headers):
        objective = self.create_objective(client, auth_headers).json()
        response = client.post(
            f"/objectives/{objective['id']}/pillars",
            json={"name": "Visibility", "weight": 0.2},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_other_users_objective_forbidden(self, client, auth_headers):
        objective = self.create_objective(client, auth_headers).json()
        client.post(
            "/auth/register",
            json={"name": "Eve", "email": "eve@example.com", "password": PASSWORD},
        )
        login = client.post("/auth/login", json={"email": "eve@example.com", "password": PASSWORD})
        eve = {"Authorization": f"Bearer {login.json()['access_token']}"}

        assert client.get(f"/objectives/{objective['id']}", headers=eve).status_code == 403

    def test_task_sweep_and_resolve(self, client, auth_headers):
        objective = self.create_objective(client, auth_headers).json()
        pillar_id = objective["pillars"][0]["id"]

        task = client.post(
            f"/objectives/{objective['id']}/tasks",
            json={
                "title": "Ask for feedback",
                "scheduled_at": (utcnow() - timedelta(hours=2)).isoformat(),
                "pillar_id": pillar_id,
            },
            headers=auth_headers,
        )
        assert task.status_code == 201

        report = client.post("/deviations/sweep", headers=auth_headers).json()
        assert report["deviations_created"] == 1
        assert report["created"][0]["type"] == "missed_task"

        status = client.get(f"/objectives/{objective['id']}", headers=auth_headers).json()["status"]
        assert status == "deviation_detected"

        done = client.post(f"/tasks/{task.json()['id']}/complete", headers=auth_headers)
        assert done.status_code == 200
        assert done.json()["status"] == "completed"

        open_deviations = client.get(
            "/deviations", params={"unresolved_only": True}, headers=auth_headers
        ).json()
        assert open_deviations == []
        status = client.get(f"/objectives/{objective['id']}", headers=auth_headers).json()["status"]
        assert status == "on_track"

    def test_pause_and_resume(self, client, auth_headers):
        objective = self.create_objective(client, auth_headers).json()
        url = f"/objectives/{objective['id']}/status"

        paused = client.put(url, json={"status": "paused"}, headers=auth_headers).json()
        assert paused["status"] == "paused"
        assert paused["is_paused"] is True

        assert client.put(url, json={"status": "deviation_detected"}, headers=auth_headers).status_code == 422

        resumed = client.put(url, json={"status": "on_track"}, headers=auth_headers).json()
        assert resumed["status"] == "on_track"
        assert resumed["is_paused"] is False

    def test_ritual_completion_streak(self, client, auth_headers):
        objective = self.create_objective(client, auth_headers).json()
        ritual = client.post(
            f"/objectives/{objective['id']}/rituals",
            json={"name": "Deep work", "frequency": "daily"},
            headers=auth_headers,
        ).json()

        response = client.post(f"/rituals/{ritual['id']}/completions", json={}, headers=auth_headers)
        assert response.status_code == 201

        ritual = client.get(f"/rituals/{ritual['id']}", headers=auth_headers).json()
        assert ritual["current_streak"] == 1

        future = (utcnow() + timedelta(days=30)).isoformat()
        response = client.post(
            f"/rituals/{ritual['id']}/completions", json={"completed_at": future}, headers=auth_headers
        )
        assert response.status_code == 422
        ritual = client.get(f"/rituals/{ritual['id']}", headers=auth_headers).json()
        assert (ritual["current_streak"], ritual["longest_streak"]) == (1, 1)

    def test_delete_objective(self, client, auth_headers):
        objective = self.create_objective(client, auth_headers).json()
        url = f"/objectives/{objective['id']}"
        assert client.delete(url, headers=auth_headers).status_code == 200
        assert client.get(url, headers=auth_headers).status_code == 404
