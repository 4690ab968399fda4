import sqlite3

GENRES = ["jazz", "rock", "pop", "folk", "electronic"]


def _seed_catalog(conn, count=40):
    rows = []
    for i in range(count):
        rows.append(
            (
                f"alb{i}",
                f"Record {i}",
                f"Artist {i % 8}",
                str([GENRES[i % len(GENRES)]]),
                f"20{10 + i % 14}-01-01",
                4 + (i % 6),
                i % 7,
                (i + 1) if i % 5 == 0 else None,
                0.5,
                0.5,
                0.5,
                0.5,
                0.5,
            )
        )
    conn.executemany(
        """
        INSERT INTO albums (
            id, title, artist_name, genres, release_date, average_rating, total_reviews, chart_rank,
            energy, valence, danceability, acousticness, tempo
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )


def _insert_user(conn, username, adventurousness=None):
    conn.execute("INSERT INTO users (username, adventurousness) VALUES (?, ?)", (username, adventurousness))


def _insert_reviews(conn, username, ratings):
    conn.executemany(
        "INSERT INTO reviews (user_id, album_id, rating, created_at) VALUES (?, ?, ?, ?)",
        [(username, album_id, rating, f"2024-05-{10 + i:02d} 12:00:00") for i, (album_id, rating) in enumerate(ratings)],
    )


def _seed(db_path):
    with sqlite3.connect(db_path) as conn:
        _seed_catalog(conn)
        _insert_user(conn, "ana")
        _insert_user(conn, "ben")
        _insert_user(conn, "newbie")
        _insert_reviews(conn, "ana", [("alb0", 9), ("alb5", 8), ("alb1", 4), ("alb10", 7)])
        _insert_reviews(conn, "ben", [("alb0", 8), ("alb5", 7), ("alb1", 3), ("alb15", 9)])
        conn.execute(
            "INSERT INTO user_audio_prefs (user_id, feature, min_value, max_value, sweet_spot, weight) VALUES (?, ?, ?, ?, ?, ?)",
            ("ana", "energy", 0.2, 0.8, 0.5, 1.0),
        )
        conn.commit()


def _login(client, username):
    with client.session_transaction() as session_state:
        session_state["user_id"] = username


def test_routes_require_session(app_client):
    _, client, _ = app_client
    for path in ("/api/albums/random", "/api/albums/swipe", "/api/compatibility/ben", "/api/taste-profile", "/api/albums/alb3/skip"):
        response = client.get(path)
        assert response.status_code == 401
        assert response.get_json()["error"] == "auth required"


def test_random_album_payload(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    response = client.get("/api/albums/random?mode=smart")
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["album"]["id"] not in {"alb0", "alb5", "alb1", "alb10"}
    assert 0 <= payload["recommendation"]["score"] <= 100
    assert payload["recommendation"]["mode"] == "smart"
    assert payload["recommendation"]["reason"]
    assert "genre" in payload["recommendation"]["breakdown"]
    assert payload["user_stats"]["review_count"] == 4
    assert payload["user_stats"]["spin_limit"] == 12
    assert len(payload["user_stats"]["top_genres"]) <= 3
    assert payload["degraded_pools"] == []


def test_random_album_modes_and_errors(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    for mode in ("discovery", "quality", "pure-random"):
        response = client.get(f"/api/albums/random?mode={mode}")
        assert response.status_code == 200
        assert response.get_json()["recommendation"]["mode"] == mode

    response = client.get("/api/albums/random?mode=tailored")
    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_input"

    _login(client, "newbie")
    response = client.get("/api/albums/random")
    assert response.status_code == 403
    assert response.get_json()["code"] == "not_eligible"


def test_swipe_batch(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    response = client.get("/api/albums/swipe?limit=10")
    assert response.status_code == 200
    payload = response.get_json()
    ids = [item["id"] for item in payload["items"]]
    assert payload["onboarding"] is False
    assert payload["count"] == len(ids) == 10
    assert len(set(ids)) == len(ids)
    assert not {"alb0", "alb5", "alb1", "alb10"}.intersection(ids)

    assert client.get("/api/albums/swipe?limit=0").status_code == 400
    assert client.get("/api/albums/swipe?limit=lots").status_code == 400

    capped = client.get("/api/albums/swipe?limit=500").get_json()
    assert capped["count"] <= 50


def test_onboarding_swipe_with_zero_reviews(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "newbie")

    response = client.get("/api/albums/swipe?onboarding=true&limit=20")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["onboarding"] is True
    assert payload["items"]
    for item in payload["items"]:
        charted = item["chart_rank"] is not None
        well_reviewed = (item["average_rating"] or 0) >= 6 and item["total_reviews"] >= 3
        assert charted or well_reviewed


def test_compatibility(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    response = client.get("/api/compatibility/ben")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["user_a"] == "ana"
    assert payload["user_b"] == "ben"
    assert 0 <= payload["overall_score"] <= 100
    assert payload["match_type"] in {"taste_twin", "genre_buddy", "complementary", "explorer_guide"}

    assert client.get("/api/compatibility/newbie").status_code == 403
    assert client.get("/api/compatibility/ana").status_code == 400


def test_taste_profile(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    response = client.get("/api/taste-profile")
    assert response.status_code == 200
    profile = response.get_json()["profile"]
    assert profile["review_count"] == 4
    assert profile["top_genres"][0] == "jazz"
    assert abs(sum(profile["genre_weights"].values()) - 1.0) < 1e-9


def test_skip_lifecycle_hides_album(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    assert client.get("/api/albums/alb3/skip").status_code == 404

    response = client.post("/api/albums/alb3/skip", json={"reason": "not_now"})
    assert response.status_code == 200
    skip = response.get_json()["skip"]
    assert skip["reason"] == "not_now"
    assert skip["active"] is True

    response = client.patch("/api/albums/alb3/skip", json={"reason": "not_interested"})
    assert response.status_code == 200
    assert response.get_json()["skip"]["reason"] == "not_interested"

    assert client.get("/api/albums/alb3/skip").get_json()["skip"]["reason"] == "not_interested"

    for _ in range(5):
        ids = {item["id"] for item in client.get("/api/albums/swipe?limit=30").get_json()["items"]}
        assert "alb3" not in ids


def test_skip_validation(app_client):
    _, client, db_path = app_client
    _seed(db_path)
    _login(client, "ana")

    response = client.post("/api/albums/alb3/skip", json={"reason": "meh"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_input"

    assert client.post("/api/albums/nope/skip", json={}).status_code == 404
    assert client.patch("/api/albums/alb4/skip", json={"reason": "not_now"}).status_code == 404
    assert client.patch("/api/albums/alb4/skip", json={}).status_code == 400

    response = client.post("/api/albums/alb4/skip", json={"reason": None})
    assert response.status_code == 200
    assert response.get_json()["skip"]["reason"] is None
