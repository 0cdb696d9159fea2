import pytest

from conftest import fetch_one

NOTES = "/api/v1/notes"


def note_payload(**overrides):
    payload = {
        "title": "Operating Systems unit 3",
        "description": "Scheduling, deadlocks and memory management.",
        "subject": "Operating Systems",
        "type": "Notes",
        "semester": "5",
        "tags": ["os", "scheduling"],
        "file_url": "https://files.example.com/os-unit-3.pdf",
        "file_name": "os-unit-3.pdf",
        "file_size": 204800,
        "pages": 24,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def author(make_user):
    return make_user(name="Nisha Author")


@pytest.fixture
def reader(make_user):
    return make_user(name="Rahul Reader")


@pytest.fixture
def note(client, author):
    response = client.post(f"{NOTES}/", json=note_payload(), headers=author["headers"])
    assert response.status_code == 201, response.json()
    return response.json()["data"]["note"]


def rate(client, note, user, value):
    return client.post(f"{NOTES}/{note['id']}/rate", json={"rating": value}, headers=user["headers"])


class TestNoteCrud:

    def test_create_note(self, author, note):
        assert note["author_id"] == author["id"]
        assert note["author_name"] == "Nisha Author"
        assert note["rating"] == 0
        assert note["rating_count"] == 0
        assert note["is_saved"] is False

    def test_list_and_get_are_public(self, client, note):
        listed = client.get(f"{NOTES}/").json()["data"]
        assert [n["id"] for n in listed["notes"]] == [note["id"]]
        fetched = client.get(f"{NOTES}/{note['id']}").json()["data"]["note"]
        assert fetched["title"] == note["title"]
        assert fetched["is_saved"] is None

    def test_invalid_type(self, client, author):
        response = client.post(f"{NOTES}/", json=note_payload(type="Essay"), headers=author["headers"])
        assert response.status_code == 400
        assert "type" in [e["field"] for e in response.json()["errors"]]

    def test_only_author_can_update(self, client, reader, author, note):
        denied = client.put(f"{NOTES}/{note['id']}", json={"title": "Stolen title"}, headers=reader["headers"])
        assert denied.status_code == 403
        assert denied.json()["message"] == "Not authorized to update this note"

        ok = client.put(f"{NOTES}/{note['id']}", json={"pages": 30}, headers=author["headers"])
        assert ok.status_code == 200
        assert ok.json()["data"]["note"]["pages"] == 30

    def test_delete_is_soft(self, client, author, reader, note):
        assert client.delete(f"{NOTES}/{note['id']}", headers=reader["headers"]).status_code == 403
        assert client.delete(f"{NOTES}/{note['id']}", headers=author["headers"]).status_code == 200

        assert client.get(f"{NOTES}/{note['id']}").status_code == 404
        assert client.get(f"{NOTES}/").json()["data"]["notes"] == []
        uploaded = client.get(f"{NOTES}/my/uploaded", headers=author["headers"]).json()["data"]["notes"]
        assert uploaded[0]["is_active"] is False

    def test_download_counts(self, client, note):
        first = client.post(f"{NOTES}/{note['id']}/download").json()["data"]
        second = client.post(f"{NOTES}/{note['id']}/download").json()["data"]
        assert first["file_url"] == note["file_url"]
        assert second["downloads"] == 2

    def test_malformed_id(self, client):
        response = client.get(f"{NOTES}/abc")
        assert response.status_code == 404
        assert response.json()["message"] == "Note not found"


class TestBookmarks:

    def test_save_and_unsave(self, client, reader, note):
        assert client.post(f"{NOTES}/{note['id']}/save", headers=reader["headers"]).status_code == 200
        saved = client.get(f"{NOTES}/my/saved", headers=reader["headers"]).json()["data"]["notes"]
        assert [n["id"] for n in saved] == [note["id"]]
        assert saved[0]["is_saved"] is True

        again = client.post(f"{NOTES}/{note['id']}/save", headers=reader["headers"])
        assert again.status_code == 400
        assert again.json()["message"] == "Note already saved"

        assert client.delete(f"{NOTES}/{note['id']}/save", headers=reader["headers"]).status_code == 200
        assert client.get(f"{NOTES}/my/saved", headers=reader["headers"]).json()["data"]["notes"] == []


class TestRatings:

    def test_average_over_distinct_users(self, client, make_user, note):
        raters = [make_user(name=f"Rater {i}") for i in range(3)]
        for user, value in zip(raters, (5, 3, 4)):
            response = rate(client, note, user, value)
            assert response.status_code == 200

        assert response.json()["data"] == {"note_id": note["id"], "rating": 4.0, "rating_count": 3}

        # The first rater changes their mind: 5 is replaced by 1.
        response = rate(client, note, raters[0], 1)
        assert response.json()["data"] == {"note_id": note["id"], "rating": 2.7, "rating_count": 3}

        stored = fetch_one("SELECT rating, rating_count FROM notes WHERE id = ?", (note["id"],))
        assert (stored["rating"], stored["rating_count"]) == (2.7, 3)
        count = fetch_one("SELECT COUNT(*) AS count FROM note_ratings WHERE note_id = ?", (note["id"],))
        assert count["count"] == 3

    def test_user_rating_is_reported_to_the_rater(self, client, reader, note):
        rate(client, note, reader, 4)
        fetched = client.get(f"{NOTES}/{note['id']}", headers=reader["headers"]).json()["data"]["note"]
        assert fetched["user_rating"] == 4

    @pytest.mark.parametrize("value", [0, 6])
    def test_rating_out_of_range(self, client, reader, note, value):
        response = rate(client, note, reader, value)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "rating"

    def test_rating_a_deleted_note(self, client, author, reader, note):
        client.delete(f"{NOTES}/{note['id']}", headers=author["headers"])
        assert rate(client, note, reader, 5).status_code == 404
