"""
Tests for the author collection endpoints.
"""

from library_api.seed import DOUGLAS_ADAMS_ID, NEIL_GAIMAN_ID, STEPHEN_KING_ID

UNKNOWN_ID = "00000000-0000-0000-0000-000000000001"


def test_get_collection_sorted_by_name(client):
    response = client.get(f"/api/authors/({STEPHEN_KING_ID},{DOUGLAS_ADAMS_ID}, {NEIL_GAIMAN_ID})")
    assert response.status_code == 200
    assert [author["name"] for author in response.json()] == [
        "Douglas Adams", "Neil Gaiman", "Stephen King"
    ]


def test_get_collection_with_one_missing_id(client):
    response = client.get(f"/api/authors/({STEPHEN_KING_ID},{UNKNOWN_ID})")
    assert response.status_code == 404
    assert UNKNOWN_ID not in response.json()["error"]


def test_get_collection_malformed_ids(client):
    assert client.get("/api/authors/(not-a-guid)").status_code == 400
    assert client.get("/api/authors/( , )").status_code == 400


def test_create_collection_and_follow_location(client):
    payload = [
        {"firstName": "Agatha", "lastName": "Christie", "dateOfBirth": "1890-09-15", "genre": "Mystery"},
        {"firstName": "Ian", "lastName": "Rankin", "dateOfBirth": "1960-04-28", "genre": "Mystery"},
    ]
    response = client.post("/api/authorcollections", json=payload)
    assert response.status_code == 201
    created = response.json()
    assert [author["name"] for author in created] == ["Agatha Christie", "Ian Rankin"]

    location = response.headers["Location"]
    assert "/api/authors/(" in location

    fetched = client.get(location)
    assert fetched.status_code == 200
    assert {author["id"] for author in fetched.json()} == {author["id"] for author in created}


def test_create_empty_collection(client):
    assert client.post("/api/authorcollections", json=[]).status_code == 400


def test_create_collection_invalid_author(client):
    payload = [{"firstName": "Agatha", "dateOfBirth": "1890-09-15", "genre": "Mystery"}]
    response = client.post("/api/authorcollections", json=payload)
    assert response.status_code == 422
    assert "0.lastName" in response.json()["errors"]
    assert len(client.get("/api/authors").json()) == 6
