import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core import services
from app.db.models import Pin, PinImage

IMAGES = [
    "https://img.example/primary.jpg",
    "https://img.example/second.jpg",
    "https://img.example/third.jpg",
]


async def test_create_pin_keeps_secondary_images_in_order(client, create_pin):
    pin = await create_pin(images=IMAGES, richText={"type": "doc", "content": []})

    assert pin["title"] == "Sunset"
    assert pin["image_url"] == IMAGES[0]
    assert pin["images"] == IMAGES[1:]
    assert pin["rich_text"] == {"type": "doc", "content": []}
    assert pin["views"] == 0
    assert pin["likes"] == 0
    assert pin["comment_count"] == 0

    response = await client.get(f"/api/pins/{pin['id']}")
    assert response.status_code == 200
    assert response.json()["images"] == IMAGES[1:]


async def test_create_pin_with_only_a_primary_image(create_pin):
    pin = await create_pin(images=IMAGES[:1])
    assert pin["image_url"] == IMAGES[0]
    assert pin["images"] == []


async def test_failed_secondary_image_rolls_back_the_whole_pin(session):
    with pytest.raises(IntegrityError):
        await services.create_pin(
            session,
            title="Broken",
            description=None,
            images=[IMAGES[0], IMAGES[1], ""],
            username="alice",
        )

    assert await session.scalar(select(func.count(Pin.id))) == 0
    assert await session.scalar(select(func.count(PinImage.id))) == 0


async def test_invalid_image_is_a_client_error_and_nothing_is_stored(client):
    response = await client.post(
        "/api/pins",
        json={"title": "Broken", "images": [IMAGES[0], ""], "username": "alice"},
    )
    assert response.status_code == 400

    listing = await client.get("/api/pins")
    assert listing.json() == []


async def test_missing_title_names_the_field(client):
    response = await client.post(
        "/api/pins", json={"images": IMAGES, "username": "alice"}
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Field 'title' is required"


async def test_pin_needs_at_least_one_image(client):
    response = await client.post(
        "/api/pins", json={"title": "No images", "images": [], "username": "alice"}
    )
    assert response.status_code == 422
    assert "images" in response.json()["detail"]


async def test_blank_title_is_rejected(client):
    response = await client.post(
        "/api/pins", json={"title": "   ", "images": IMAGES, "username": "alice"}
    )
    assert response.status_code == 422


async def test_get_unknown_pin_is_404(client):
    response = await client.get("/api/pins/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Pin not found"


async def test_list_pins_is_paginated_newest_first(client, create_pin):
    created = [await create_pin(title=f"Pin {i}") for i in range(3)]

    first_page = await client.get("/api/pins", params={"page": 1, "limit": 2})
    second_page = await client.get("/api/pins", params={"page": 2, "limit": 2})

    assert [p["id"] for p in first_page.json()] == [created[2]["id"], created[1]["id"]]
    assert [p["id"] for p in second_page.json()] == [created[0]["id"]]


async def test_list_pins_filters_by_owner_and_search(client, create_pin):
    await create_pin(username="alice", title="Garden ideas")
    await create_pin(username="bob", title="Kitchen", description="small garden window")
    await create_pin(username="bob", title="Bikes", description="")

    by_owner = await client.get("/api/pins", params={"owner": "bob"})
    assert {p["title"] for p in by_owner.json()} == {"Kitchen", "Bikes"}

    by_search = await client.get("/api/pins", params={"search": "GARDEN"})
    assert {p["title"] for p in by_search.json()} == {"Garden ideas", "Kitchen"}


async def test_delete_pin(client, create_pin):
    pin = await create_pin()

    response = await client.delete(f"/api/pins/{pin['id']}")
    assert response.status_code == 200
    assert response.json() == {"id": pin["id"]}

    again = await client.delete(f"/api/pins/{pin['id']}")
    assert again.status_code == 404


async def test_deleting_a_pin_removes_its_images_likes_and_comments(client, create_pin):
    pin = await create_pin(images=IMAGES)
    await client.post(f"/api/pins/{pin['id']}/like", json={"username": "bob"})
    await client.post(
        f"/api/pins/{pin['id']}/comments", json={"username": "bob", "content": "Lovely"}
    )

    before = (await client.get("/api/system/stats")).json()
    assert before["pin_images"] == 2
    assert before["likes"] == 1
    assert before["comments"] == 1

    await client.delete(f"/api/pins/{pin['id']}")

    after = (await client.get("/api/system/stats")).json()
    assert after["pins"] == 0
    assert after["pin_images"] == 0
    assert after["likes"] == 0
    assert after["comments"] == 0


async def test_view_counter(client, create_pin):
    pin = await create_pin()

    first = await client.post(f"/api/pins/{pin['id']}/view")
    second = await client.post(f"/api/pins/{pin['id']}/view")

    assert first.json() == {"pin_id": pin["id"], "views": 1}
    assert second.json() == {"pin_id": pin["id"], "views": 2}

    missing = await client.post("/api/pins/999/view")
    assert missing.status_code == 404


async def test_search_ranks_title_then_owner_then_description(client, create_pin):
    by_description = await create_pin(
        username="carol", title="City", description="Towers at sunset"
    )
    by_owner = await create_pin(username="sunset_lover", title="Mountains", description="")
    by_title = await create_pin(username="alice", title="Sunset beach", description="")
    await create_pin(username="dave", title="Forest", description="Pines")

    response = await client.get("/api/pins/search", params={"q": "sunset"})
    assert response.status_code == 200

    results = response.json()
    assert [p["id"] for p in results] == [by_title["id"], by_owner["id"], by_description["id"]]
    assert [p["score"] for p in results] == [3, 2, 1]


async def test_search_treats_wildcards_literally(client, create_pin):
    await create_pin(title="100% cotton")
    await create_pin(title="Cotton candy")

    response = await client.get("/api/pins/search", params={"q": "0%"})
    assert [p["title"] for p in response.json()] == ["100% cotton"]


async def test_created_pins_for_a_user(client, create_pin):
    mine = await create_pin(username="alice")
    await create_pin(username="bob")

    response = await client.get("/api/pins/created/alice")
    assert [p["id"] for p in response.json()] == [mine["id"]]


async def test_blank_image_references_are_refused(client):
    response = await client.post(
        "/api/pins",
        json={"title": "Blank", "images": ["   ", "  "], "username": "alice"},
    )
    assert response.status_code == 400

    listing = await client.get("/api/pins")
    assert listing.json() == []


async def test_image_references_are_trimmed(create_pin):
    pin = await create_pin(images=[f"  {IMAGES[0]} ", f"{IMAGES[1]}\n"])
    assert pin["image_url"] == IMAGES[0]
    assert pin["images"] == [IMAGES[1]]


async def test_page_number_is_bounded(client):
    response = await client.get("/api/pins", params={"page": 10**15})
    assert response.status_code == 422

    response = await client.get("/api/feed", params={"username": "alice", "page": 10**15})
    assert response.status_code == 422


async def test_search_matches_non_ascii_text(client, create_pin):
    pin = await create_pin(title="Émile's garden")

    ranked = await client.get("/api/pins/search", params={"q": "Émile"})
    assert [p["id"] for p in ranked.json()] == [pin["id"]]

    listed = await client.get("/api/pins", params={"search": "Émile"})
    assert [p["id"] for p in listed.json()] == [pin["id"]]
