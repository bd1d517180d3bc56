from app.services.chat_service import chat_service_obj
from app.services.game_service import game_service_obj


def create_players(client, *names):
    return [client.post("api/v1/players", json={"username": name}).json() for name in names]


def create_game(client, black, white):
    response = client.post(
        "api/v1/games",
        json={"black_player_id": black["id"], "white_player_id": white["id"]}
    )
    assert response.status_code == 200
    return response.json()


class TestPlayerAPI:

    def test_create_player(self, client):
        response = client.post("api/v1/players", json={"username": "testuser"})
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "testuser"
        assert data["rating"] == 1200
        assert data["games_played"] == 0
        assert "id" in data

    def test_create_player_returns_existing(self, client):
        first = client.post("api/v1/players", json={"username": "same"}).json()
        second = client.post("api/v1/players", json={"username": "same"}).json()
        assert first["id"] == second["id"]

    def test_create_player_requires_username(self, client):
        response = client.post("api/v1/players", json={"username": ""})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_get_player(self, client):
        player, = create_players(client, "lookup")
        response = client.get(f"api/v1/players/{player['id']}")
        assert response.status_code == 200
        assert response.json()["username"] == "lookup"

    def test_unknown_player(self, client):
        response = client.get("api/v1/players/999999")
        assert response.status_code == 404
        assert response.json()["error_code"] == "PLAYER_NOT_FOUND"

    def test_player_stats(self, client, db_session):
        black, white = create_players(client, "p1", "p2")
        game = create_game(client, black, white)
        game_service_obj.resign(db_session, game["id"], white["id"])

        response = client.get(f"api/v1/players/{black['id']}/stats")
        assert response.status_code == 200
        data = response.json()
        assert data["rating"] == 1216
        assert data["total_games"] == 1
        assert data["wins"] == 1
        assert data["win_rate"] == 100.0

        data = client.get(f"api/v1/players/{white['id']}/stats").json()
        assert data["losses"] == 1
        assert data["win_rate"] == 0.0

    def test_active_game_and_history(self, client, db_session):
        black, white = create_players(client, "p1", "p2")

        assert client.get(f"api/v1/players/{black['id']}/active-game").json() is None

        game = create_game(client, black, white)
        active = client.get(f"api/v1/players/{black['id']}/active-game").json()
        assert active["id"] == game["id"]

        game_service_obj.resign(db_session, game["id"], black["id"])

        assert client.get(f"api/v1/players/{black['id']}/active-game").json() is None
        history = client.get(f"api/v1/players/{black['id']}/games").json()
        assert [g["id"] for g in history] == [game["id"]]
        assert history[0]["winner"] == "white"
        assert history[0]["resigned_by"] == "black"

    def test_history_limit_bounds(self, client):
        player, = create_players(client, "p1")
        assert client.get(f"api/v1/players/{player['id']}/games?limit=0").status_code == 422
        assert client.get(f"api/v1/players/{player['id']}/games?limit=101").status_code == 422


class TestGameAPI:

    def test_create_game(self, client):
        black, white = create_players(client, "p1", "p2")
        game = create_game(client, black, white)

        assert game["status"] == "active"
        assert game["current_turn"] == "black"
        assert game["black_player_id"] == black["id"]
        assert game["white_player_id"] == white["id"]
        assert (game["black_score"], game["white_score"]) == (2, 2)

    def test_create_game_same_player(self, client):
        player, = create_players(client, "solo")
        response = client.post(
            "api/v1/games",
            json={"black_player_id": player["id"], "white_player_id": player["id"]}
        )
        assert response.status_code == 422

    def test_create_game_unknown_player(self, client):
        player, = create_players(client, "p1")
        response = client.post(
            "api/v1/games",
            json={"black_player_id": player["id"], "white_player_id": 999999}
        )
        assert response.status_code == 404

    def test_create_game_player_busy(self, client):
        p1, p2, p3 = create_players(client, "p1", "p2", "p3")
        create_game(client, p1, p2)
        response = client.post(
            "api/v1/games",
            json={"black_player_id": p3["id"], "white_player_id": p1["id"]}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "PLAYER_ALREADY_IN_GAME"

    def test_get_game_state(self, client, db_session):
        black, white = create_players(client, "p1", "p2")
        game = create_game(client, black, white)
        game_service_obj.make_move(db_session, game["id"], black["id"], 2, 3)

        response = client.get(f"api/v1/games/{game['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["current_turn"] == "white"
        assert data["board"][2][3] == "black"
        assert (data["black_score"], data["white_score"]) == (4, 1)
        assert data["moves"] == [{"position": "d3", "player": "black"}]
        assert len(data["valid_moves"]) == 3
        assert data["black_player"]["username"] == "p1"

    def test_unknown_game(self, client):
        response = client.get("api/v1/games/999999")
        assert response.status_code == 404
        assert response.json()["error_code"] == "GAME_NOT_FOUND"

    def test_game_chat(self, client, db_session):
        black, white = create_players(client, "p1", "p2")
        game = create_game(client, black, white)
        chat_service_obj.create_message(db_session, game["id"], black["id"], "good luck")
        chat_service_obj.create_message(db_session, game["id"], white["id"], "you too")

        response = client.get(f"api/v1/games/{game['id']}/chat")
        assert response.status_code == 200
        assert [m["message"] for m in response.json()] == ["good luck", "you too"]

        assert client.get("api/v1/games/999999/chat").status_code == 404

    def test_abandon_game(self, client):
        black, white = create_players(client, "p1", "p2")
        game = create_game(client, black, white)

        response = client.post(f"api/v1/games/{game['id']}/abandon")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "abandoned"
        assert data["winner"] is None

        response = client.post(f"api/v1/games/{game['id']}/abandon")
        assert response.status_code == 400
        assert response.json()["error_code"] == "GAME_ENDED"

        player = client.get(f"api/v1/players/{black['id']}").json()
        assert player["rating"] == 1200
        assert player["games_played"] == 0


class TestLeaderboardAPI:

    def test_leaderboard(self, client, db_session):
        p1, p2, p3 = create_players(client, "player0", "player1", "player2")
        for _ in range(2):
            game = create_game(client, p1, p2)
            game_service_obj.resign(db_session, game["id"], p2["id"])

        response = client.get("api/v1/leaderboard")
        assert response.status_code == 200
        data = response.json()
        assert [entry["username"] for entry in data] == ["player0", "player2", "player1"]
        assert data[0]["rank"] == 1
        assert data[0]["wins"] == 2
        assert data[0]["rating"] > 1200
        assert data[2]["rating"] < 1200

    def test_leaderboard_limit(self, client):
        create_players(client, "a", "b", "c")
        assert len(client.get("api/v1/leaderboard?limit=2").json()) == 2
        assert client.get("api/v1/leaderboard?limit=0").status_code == 422
        assert client.get("api/v1/leaderboard?limit=101").status_code == 422
