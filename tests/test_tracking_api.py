import pytest

API = "/api/v1"


async def _create(client, user):
    r = await client.post(
        f"{API}/bookings",
        data={"deviceType": "laptop", "issue": "screen", "preferredTime": "2:00 PM", "address": "42 Hill Rd"},
        files={"photo": ("screen.jpg", b"\xff\xd8\xff\xe0" + b"\x00" * 32, "image/jpeg")},
        headers=user.headers,
    )
    assert r.status_code == 201
    return r.json()["data"]


@pytest.mark.asyncio
async def test_public_tracking_hides_private_fields(client, make_user):
    owner = await make_user()
    created = await _create(client, owner)

    r = await client.get(f"{API}/track/{created['bookingId']}")

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["bookingId"] == created["bookingId"]
    assert data["status"] == "pending"
    assert data["deviceType"] == "laptop"
    assert data["address"] is None
    assert data["photo"] is None
    assert [step["completed"] for step in data["timeline"]] == [True, False, False, False]


@pytest.mark.asyncio
async def test_owner_sees_address_and_photo(client, make_user):
    owner = await make_user()
    created = await _create(client, owner)

    r = await client.get(f"{API}/track/{created['bookingId']}", headers=owner.headers)

    data = r.json()["data"]
    assert data["address"] == "42 Hill Rd"
    assert data["photo"]["originalName"] == "screen.jpg"


@pytest.mark.asyncio
async def test_other_users_and_bad_tokens_get_public_view(client, make_user):
    owner = await make_user()
    stranger = await make_user()
    created = await _create(client, owner)

    r = await client.get(f"{API}/track/{created['bookingId']}", headers=stranger.headers)
    assert r.json()["data"]["address"] is None

    r = await client.get(f"{API}/track/{created['bookingId']}", headers={"Authorization": "Bearer broken"})
    assert r.status_code == 200
    assert r.json()["data"]["address"] is None


@pytest.mark.asyncio
async def test_tracking_reflects_claim(client, make_user):
    owner = await make_user()
    tech = await make_user(role="technician", first_name="Ravi", last_name="Kumar")
    created = await _create(client, owner)
    await client.post(f"{API}/bookings/{created['bookingId']}/accept", headers=tech.headers)

    data = (await client.get(f"{API}/track/{created['bookingId']}")).json()["data"]

    assert data["status"] == "in-progress"
    assert data["technicianName"] == "Ravi Kumar"
    assert [step["completed"] for step in data["timeline"]] == [True, True, True, False]


@pytest.mark.asyncio
async def test_tracking_is_by_code_only(client, make_user):
    owner = await make_user()
    created = await _create(client, owner)

    r = await client.get(f"{API}/track/{created['id']}")
    assert r.status_code == 404
