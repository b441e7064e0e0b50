async def save(client, board_id, pin_id):
    return await client.post(f"/api/boards/{board_id}/pins", json={"pin_id": pin_id})


async def test_create_board(create_board):
    board = await create_board(title="  Kitchens  ", description="Ideas", is_private=True)

    assert board["title"] == "Kitchens"
    assert board["description"] == "Ideas"
    assert board["is_private"] is True
    assert board["username"] == "alice"


async def test_board_title_is_required(client):
    response = await client.post("/api/boards", json={"username": "alice"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Field 'title' is required"


async def test_save_pin_to_board_once(client, create_pin, create_board):
    pin = await create_pin()
    board = await create_board()

    first = await save(client, board["id"], pin["id"])
    assert first.status_code == 201
    assert first.json()["pin_id"] == pin["id"]
    assert first.json()["board_id"] == board["id"]

    second = await save(client, board["id"], pin["id"])
    assert second.status_code == 409
    assert second.json()["detail"] == "Pin already saved to this board"


async def test_save_to_missing_board_or_missing_pin(client, create_pin, create_board):
    pin = await create_pin()
    board = await create_board()

    assert (await save(client, 999, pin["id"])).status_code == 404
    assert (await save(client, board["id"], 999)).status_code == 404


async def test_board_listing_has_counts_and_cover(client, create_pin, create_board):
    first = await create_pin(images=["https://img.example/first.jpg"])
    second = await create_pin(images=["https://img.example/second.jpg"])
    board = await create_board(title="Travel")
    await create_board(title="Empty")

    await save(client, board["id"], first["id"])
    await save(client, board["id"], second["id"])

    response = await client.get("/api/boards/alice")
    boards = {b["title"]: b for b in response.json()}

    assert boards["Travel"]["pin_count"] == 2
    assert boards["Travel"]["cover_image"] == "https://img.example/second.jpg"
    assert boards["Empty"]["pin_count"] == 0
    assert boards["Empty"]["cover_image"] is None


async def test_private_boards_are_only_listed_for_their_owner(client, create_board):
    await create_board(title="Public")
    await create_board(title="Secret", is_private=True)

    as_owner = await client.get("/api/boards/alice", params={"viewer": "alice"})
    as_other = await client.get("/api/boards/alice", params={"viewer": "bob"})

    assert {b["title"] for b in as_owner.json()} == {"Public", "Secret"}
    assert {b["title"] for b in as_other.json()} == {"Public"}


async def test_board_pins_most_recently_saved_first(client, create_pin, create_board):
    older = await create_pin(title="Older")
    newer = await create_pin(title="Newer")
    board = await create_board()

    await save(client, board["id"], newer["id"])
    await save(client, board["id"], older["id"])

    response = await client.get(f"/api/boards/{board['id']}/pins")
    assert response.status_code == 200

    detail = response.json()
    assert detail["title"] == "Inspiration"
    assert [p["id"] for p in detail["pins"]] == [older["id"], newer["id"]]


async def test_private_board_pins_hidden_from_others(client, create_board):
    board = await create_board(is_private=True)

    hidden = await client.get(f"/api/boards/{board['id']}/pins", params={"viewer": "bob"})
    shown = await client.get(f"/api/boards/{board['id']}/pins", params={"viewer": "alice"})

    assert hidden.status_code == 404
    assert shown.status_code == 200


async def test_remove_pin_from_board(client, create_pin, create_board):
    pin = await create_pin()
    board = await create_board()
    await save(client, board["id"], pin["id"])

    response = await client.delete(f"/api/boards/{board['id']}/pins/{pin['id']}")
    assert response.status_code == 200

    again = await client.delete(f"/api/boards/{board['id']}/pins/{pin['id']}")
    assert again.status_code == 404

    detail = (await client.get(f"/api/boards/{board['id']}/pins")).json()
    assert detail["pins"] == []


async def test_deleting_a_board_removes_its_saves_but_not_the_pins(client, create_pin, create_board):
    pin = await create_pin()
    board = await create_board()
    other = await create_board(title="Other")
    await save(client, board["id"], pin["id"])
    await save(client, other["id"], pin["id"])

    assert (await client.get("/api/system/stats")).json()["saved_pins"] == 2

    response = await client.delete(f"/api/boards/{board['id']}")
    assert response.status_code == 200
    assert response.json() == {"id": board["id"]}

    stats = (await client.get("/api/system/stats")).json()
    assert stats["boards"] == 1
    assert stats["saved_pins"] == 1
    assert stats["pins"] == 1

    assert (await client.delete(f"/api/boards/{board['id']}")).status_code == 404


async def test_saved_pins_for_a_user(client, create_pin, create_board):
    first = await create_pin(username="bob", title="First")
    second = await create_pin(username="bob", title="Second")
    public = await create_board(username="alice", title="Public")
    secret = await create_board(username="alice", title="Secret", is_private=True)

    await save(client, public["id"], first["id"])
    await save(client, secret["id"], second["id"])
    await save(client, secret["id"], first["id"])

    as_owner = await client.get("/api/pins/saved/alice", params={"username": "alice"})
    as_other = await client.get("/api/pins/saved/alice", params={"username": "bob"})

    assert [p["id"] for p in as_owner.json()] == [first["id"], second["id"]]
    assert [p["id"] for p in as_other.json()] == [first["id"]]
