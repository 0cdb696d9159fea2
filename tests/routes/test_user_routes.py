import json

import pytest

from conftest import fetch_one

USERS = "/api/v1/users"
CONTACT = "/api/v1/contact"


@pytest.fixture
def admin(make_user):
    return make_user(name="Site Admin", role="admin")


class TestUserDirectory:

    def test_admin_lists_users(self, client, admin, make_user):
        make_user(name="Asha", role="professional")
        make_user(name="Ravi")

        response = client.get(f"{USERS}/", headers=admin["headers"])
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 3
        assert [u["name"] for u in data["users"]] == ["Ravi", "Asha", "Site Admin"]

        filtered = client.get(f"{USERS}/", params={"role": "professional"}, headers=admin["headers"])
        assert [u["name"] for u in filtered.json()["data"]["users"]] == ["Asha"]

        page = client.get(f"{USERS}/", params={"limit": 1, "offset": 1}, headers=admin["headers"])
        assert page.json()["data"]["total"] == 3
        assert [u["name"] for u in page.json()["data"]["users"]] == ["Asha"]

    def test_search_by_name_or_email(self, client, admin, make_user):
        make_user(name="Meera", email="meera@campus.edu")
        response = client.get(f"{USERS}/", params={"search": "campus"}, headers=admin["headers"])
        assert [u["email"] for u in response.json()["data"]["users"]] == ["meera@campus.edu"]

    def test_non_admin_is_refused(self, client, make_user):
        user = make_user()
        response = client.get(f"{USERS}/", headers=user["headers"])
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Insufficient permissions."

    def test_get_user_with_registered_events(self, client, make_user, make_event):
        organizer = make_user(name="Organizer")
        attendee = make_user(name="Attendee")
        event = make_event(organizer)
        client.post(f"/api/v1/events/{event['id']}/register", json={}, headers=attendee["headers"])

        response = client.get(f"{USERS}/{attendee['id']}", headers=organizer["headers"])
        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert "password" not in user
        [entry] = user["registered_events"]
        assert entry["event_id"] == event["id"]
        assert entry["status"] == "registered"
        assert entry["event"]["title"] == event["title"]

    def test_get_user_with_hosted_events(self, client, make_user, make_event):
        organizer = make_user(name="Organizer", role="institution")
        attendee = make_user(name="Attendee")
        first = make_event(organizer, title="First Hackathon")
        second = make_event(organizer, title="Second Hackathon")
        client.post(f"/api/v1/events/{first['id']}/register", headers=attendee["headers"])

        user = client.get(f"{USERS}/{organizer['id']}", headers=attendee["headers"]).json()["data"]["user"]
        hosted = user["hosted_events"]
        assert [e["id"] for e in hosted] == [second["id"], first["id"]]
        assert [e["participant_count"] for e in hosted] == [0, 1]
        assert hosted[1]["title"] == "First Hackathon"
        assert hosted[1]["start"] is not None
        assert user["registered_events"] == []

    def test_get_user_requires_authentication(self, client, make_user):
        user = make_user()
        assert client.get(f"{USERS}/{user['id']}").status_code == 401

    @pytest.mark.parametrize("user_id", ["9999", "not-a-number"])
    def test_unknown_user(self, client, make_user, user_id):
        viewer = make_user()
        response = client.get(f"{USERS}/{user_id}", headers=viewer["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestMentorSearch:

    URL = f"{USERS}/search/mentors"

    @pytest.fixture
    def mentors(self, client, make_user):
        def with_profile(name, role, city, skills):
            user = make_user(name=name, role=role)
            response = client.put(
                "/api/v1/auth/profile",
                json={"profile": {"city": city, "skills": skills}},
                headers=user["headers"],
            )
            assert response.status_code == 200
            return user

        return {
            "meera": with_profile("Meera", "professional", "Pune", ["python", "django"]),
            "kabir": with_profile("Kabir", "institution", "Mumbai", ["go"]),
            "sana": with_profile("Sana", "student", "Pune", ["python"]),
        }

    def names(self, response):
        assert response.status_code == 200
        return [m["name"] for m in response.json()["data"]["mentors"]]

    def test_only_professionals_and_institutions(self, client, mentors):
        viewer = mentors["sana"]
        assert self.names(client.get(self.URL, headers=viewer["headers"])) == ["Meera", "Kabir"]

    def test_any_skill_matches(self, client, mentors):
        response = client.get(self.URL, params={"skills": "rust, go"}, headers=mentors["sana"]["headers"])
        assert self.names(response) == ["Kabir"]
        response = client.get(self.URL, params={"skills": "python"}, headers=mentors["sana"]["headers"])
        assert self.names(response) == ["Meera"]

    def test_city_ignores_case(self, client, mentors):
        response = client.get(self.URL, params={"city": "pUNE"}, headers=mentors["sana"]["headers"])
        assert self.names(response) == ["Meera"]

    def test_busiest_hosts_first(self, client, mentors, make_event):
        make_event(mentors["kabir"])
        response = client.get(self.URL, headers=mentors["sana"]["headers"])
        assert self.names(response) == ["Kabir", "Meera"]
        kabir = response.json()["data"]["mentors"][0]
        assert len(kabir["hosted_events"]) == 1
        assert "email" not in kabir

    def test_inactive_accounts_are_skipped(self, client, mentors, admin):
        client.put(f"{USERS}/{mentors['meera']['id']}/status", json={"is_active": False}, headers=admin["headers"])
        assert self.names(client.get(self.URL, headers=admin["headers"])) == ["Kabir"]

    def test_limit(self, client, mentors):
        headers = mentors["sana"]["headers"]
        assert self.names(client.get(self.URL, params={"limit": 1}, headers=headers)) == ["Meera"]
        for limit in (0, 51):
            response = client.get(self.URL, params={"limit": limit}, headers=headers)
            assert response.status_code == 400
            assert response.json()["errors"][0]["field"] == "limit"

    def test_requires_authentication(self, client, mentors):
        assert client.get(self.URL).status_code == 401


class TestAccountStatus:

    def test_deactivated_user_is_locked_out(self, client, admin, make_user):
        user = make_user()
        response = client.put(f"{USERS}/{user['id']}/status", json={"is_active": False}, headers=admin["headers"])
        assert response.status_code == 200
        assert response.json()["message"] == "User deactivated successfully"
        assert response.json()["data"]["user"]["is_active"] is False

        locked = client.get("/api/v1/auth/me", headers=user["headers"])
        assert locked.status_code == 401
        assert locked.json()["message"] == "Account is deactivated. Please contact support."

        client.put(f"{USERS}/{user['id']}/status", json={"is_active": True}, headers=admin["headers"])
        assert client.get("/api/v1/auth/me", headers=user["headers"]).status_code == 200

    def test_only_admin_changes_status(self, client, make_user):
        user = make_user()
        other = make_user()
        response = client.put(f"{USERS}/{other['id']}/status", json={"is_active": False}, headers=user["headers"])
        assert response.status_code == 403


class TestContactForm:

    def contact_payload(self, **overrides):
        payload = {
            "full_name": "Priya Sharma",
            "email": "priya@example.com",
            "topic": "Sponsorship",
            "related_to": "Partnership",
            "message": "We would like to sponsor the next hackathon.",
        }
        payload.update(overrides)
        return payload

    def test_message_is_queued_for_support(self, client):
        response = client.post(f"{CONTACT}/", json=self.contact_payload())
        assert response.status_code == 200
        assert response.json()["message"] == "Thank you for contacting us! We will get back to you soon."

        mail = fetch_one("SELECT * FROM email_outbox WHERE kind = ?", ("contact",))
        assert mail["reply_to"] == "priya@example.com"
        assert mail["subject"] == "Contact Form: Partnership - Sponsorship"
        assert json.loads(mail["context"])["full_name"] == "Priya Sharma"
        assert fetch_one("SELECT * FROM email_outbox WHERE kind = ?", ("contact-copy",)) is None

    def test_copy_to_sender(self, client):
        client.post(f"{CONTACT}/", json=self.contact_payload(send_copy=True, topic=None))
        mail = fetch_one("SELECT * FROM email_outbox WHERE kind = ?", ("contact",))
        assert mail["subject"] == "Contact Form: Partnership - No Topic"
        copy = fetch_one("SELECT * FROM email_outbox WHERE kind = ?", ("contact-copy",))
        assert copy["recipient"] == "priya@example.com"

    def test_short_message_is_rejected(self, client):
        response = client.post(f"{CONTACT}/", json=self.contact_payload(message="Hi"))
        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["message"]
