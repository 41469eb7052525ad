import pytest


def create_person(client, headers, kind, name=None, age=None):
    response = client.post(f"/api/{kind}/", headers=headers)
    assert response.status_code == 201
    person = response.json()
    if name is not None:
        client.patch(f"/api/{kind}/{person['id']}", json={"field": "name", "value": name}, headers=headers)
    if age is not None:
        client.patch(f"/api/{kind}/{person['id']}", json={"field": "age", "value": age}, headers=headers)
    return person["id"]


def published_movie(client, headers, title):
    movie = client.post("/api/movies/", headers=headers).json()
    client.patch(f"/api/movies/{movie['id']}", json={"field": "title", "value": title}, headers=headers)
    client.patch(f"/api/movies/{movie['id']}", json={"field": "published", "value": True}, headers=headers)
    return movie


@pytest.mark.parametrize("kind", ["actors", "directors"])
def test_create_requires_session(client, kind):
    response = client.post(f"/api/{kind}/")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


@pytest.mark.parametrize("kind", ["actors", "directors"])
def test_home_list_follows_create_and_rename(client, owner_headers, kind):
    assert client.get(f"/api/{kind}/").json() == []

    person_id = create_person(client, owner_headers, kind, name="Agnes Varda")
    assert [p["name"] for p in client.get(f"/api/{kind}/").json()] == ["Agnes Varda"]

    client.patch(f"/api/{kind}/{person_id}", json={"field": "name", "value": "Agnès Varda"}, headers=owner_headers)
    assert [p["name"] for p in client.get(f"/api/{kind}/").json()] == ["Agnès Varda"]


def test_metadata_update_of_missing_actor(client, owner_headers):
    response = client.patch("/api/actors/999", json={"field": "name", "value": "Nobody"}, headers=owner_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "actor not found"}


def test_delete_missing_director(client, owner_headers):
    response = client.delete("/api/directors/999", headers=owner_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "director not found"}


def test_any_signed_in_user_may_edit_people(client, owner_headers, other_headers):
    # Actors have no owner; the guard only checks the session and existence
    actor_id = create_person(client, owner_headers, "actors", name="Max von Sydow")

    response = client.patch(f"/api/actors/{actor_id}", json={"field": "age", "value": 90}, headers=other_headers)

    assert response.status_code == 200
    assert response.json()["age"] == 90


def test_age_must_be_plausible(client, owner_headers):
    actor_id = create_person(client, owner_headers, "actors")

    response = client.patch(f"/api/actors/{actor_id}", json={"field": "age", "value": -1}, headers=owner_headers)

    assert response.status_code == 422


def test_dashboard_listing_requires_session(client, owner_headers):
    create_person(client, owner_headers, "directors", name="Chantal Akerman")

    assert client.get("/api/directors/all").status_code == 401
    listed = client.get("/api/directors/all", headers=owner_headers).json()
    assert [d["name"] for d in listed] == ["Chantal Akerman"]


def test_search_and_lookup_by_name(client, owner_headers):
    create_person(client, owner_headers, "actors", name="Liv Ullmann", age=85)
    create_person(client, owner_headers, "actors", name="Bibi Andersson")

    # Warm the search before a matching actor exists
    assert [a["name"] for a in client.get("/api/actors/search", params={"q": "ull"}).json()] == ["Liv Ullmann"]
    create_person(client, owner_headers, "actors", name="Ullrich Matthes")
    found = client.get("/api/actors/search", params={"q": "ull"}).json()
    assert sorted(a["name"] for a in found) == ["Liv Ullmann", "Ullrich Matthes"]

    by_name = client.get("/api/actors/by-name/Liv Ullmann")
    assert by_name.status_code == 200
    assert by_name.json()["age"] == 85


def test_lookup_by_unknown_name(client):
    response = client.get("/api/directors/by-name/Nobody")

    assert response.status_code == 404


def test_detail_of_missing_actor(client):
    assert client.get("/api/actors/999").status_code == 404


def test_detail_lists_known_for_and_paginated_filmography(client, owner_headers, other_headers):
    actor_id = create_person(client, owner_headers, "actors", name="Isabelle Huppert")
    titles = ["Elle", "Amour", "Loulou", "Madame Bovary", "La Cérémonie", "Violette"]
    ratings = {"Elle": 3, "Amour": 5}
    for title in titles:
        movie = published_movie(client, owner_headers, title)
        client.post(f"/api/movies/{movie['id']}/actors", json={"actor_id": actor_id}, headers=owner_headers)
        if title in ratings:
            client.post(
                "/api/ratings/",
                json={"movie_id": movie["id"], "rating": ratings[title]},
                headers=other_headers,
            )

    first_page = client.get(f"/api/actors/{actor_id}").json()
    second_page = client.get(f"/api/actors/{actor_id}", params={"page": 2}).json()

    assert first_page["person"]["name"] == "Isabelle Huppert"
    assert [m["title"] for m in first_page["top_movies"][:2]] == ["Amour", "Elle"]
    assert len(first_page["top_movies"]) == 4
    assert len(first_page["all_movies"]["movies"]) == 5
    assert len(second_page["all_movies"]["movies"]) == 1
    assert first_page["all_movies"]["pagination"] == {
        "page": 1, "limit": 5, "total_items": 6, "total_pages": 2,
    }


def test_filmography_skips_unpublished_movies(client, owner_headers):
    director_id = create_person(client, owner_headers, "directors", name="Andrei Tarkovsky")
    draft = client.post("/api/movies/", headers=owner_headers).json()
    client.post(f"/api/movies/{draft['id']}/directors", json={"director_id": director_id}, headers=owner_headers)

    detail_url = f"/api/directors/{director_id}"
    assert client.get(detail_url).json()["all_movies"]["movies"] == []

    client.patch(f"/api/movies/{draft['id']}", json={"field": "published", "value": True}, headers=owner_headers)
    assert len(client.get(detail_url).json()["all_movies"]["movies"]) == 1


def test_filmography_follows_rating_changes(client, owner_headers):
    actor_id = create_person(client, owner_headers, "actors", name="Erland Josephson")
    movie = published_movie(client, owner_headers, "Nostalghia")
    client.post(f"/api/movies/{movie['id']}/actors", json={"actor_id": actor_id}, headers=owner_headers)
    detail_url = f"/api/actors/{actor_id}"
    assert client.get(detail_url).json()["top_movies"][0]["average_rating"] is None

    client.post("/api/ratings/", json={"movie_id": movie["id"], "rating": 4}, headers=owner_headers)

    assert client.get(detail_url).json()["top_movies"][0]["average_rating"] == 4.0


def test_delete_actor(client, owner_headers):
    actor_id = create_person(client, owner_headers, "actors", name="Gunnar Björnstrand")
    assert len(client.get("/api/actors/").json()) == 1

    response = client.delete(f"/api/actors/{actor_id}", headers=owner_headers)

    assert response.status_code == 200
    assert response.json() == {"id": actor_id}
    assert client.get("/api/actors/").json() == []
    assert client.get(f"/api/actors/{actor_id}").status_code == 404
