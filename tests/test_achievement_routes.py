from unittest.mock import AsyncMock, patch

import pytest
from bson import ObjectId

from conftest import make_cursor

MODULE = "meditation_api.controllers.achievement_controller"
SERVICE = "meditation_api.services.achievement_service"


@pytest.mark.asyncio
async def test_seed_requires_admin(client):
    response = await client.post("/api/achievements/seed")
    assert response.status_code == 403
    assert response.json() == {"error": "Unauthorized: Admin access required"}


@pytest.mark.asyncio
async def test_admin_can_seed(app, client, admin_user):
    from meditation_api.utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: admin_user
    with patch(f"{MODULE}.achievement_service") as service:
        service.seed_achievements = AsyncMock(return_value={"matched": 0, "modified": 0, "upserted": 10, "total": 10})
        response = await client.post("/api/achievements/seed")

    assert response.status_code == 200
    assert response.json()["upserted"] == 10


@pytest.mark.asyncio
async def test_delete_missing_achievement_is_404(app, client, admin_user):
    from meditation_api.utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: admin_user
    with patch(f"{MODULE}.achievement_service") as service:
        service.delete_achievement = AsyncMock(return_value=False)
        response = await client.delete(f"/api/achievements/{ObjectId()}")

    assert response.status_code == 404
    assert response.json() == {"error": "Achievement not found"}


@pytest.mark.asyncio
async def test_points(client, user):
    with patch(f"{MODULE}.achievement_service") as service:
        service.get_user_points = AsyncMock(return_value=35)
        response = await client.get("/api/user/achievements/points")

    assert response.json() == {"points": 35}
    service.get_user_points.assert_awaited_once_with(str(user["_id"]))


@pytest.mark.asyncio
async def test_report_activity(client, user):
    updated = [{"achievement_id": str(ObjectId()), "name": "First Steps", "progress": 100, "is_completed": True}]
    with patch(f"{MODULE}.achievement_service") as service:
        service.process_user_activity = AsyncMock(return_value=updated)
        response = await client.post(
            "/api/user/activity",
            json={"activity_type": "streak", "activity_data": {"current_streak": 7}},
        )

    assert response.status_code == 200
    assert response.json()["updated"] == updated
    service.process_user_activity.assert_awaited_once_with(str(user["_id"]), "streak", {"current_streak": 7})


@pytest.mark.asyncio
@pytest.mark.parametrize("streak,expected", [("3", 42), ("soon", 0)])
async def test_loosely_typed_activity_payload(client, streak, expected):
    week = {
        "_id": ObjectId(),
        "name": "Week Warrior",
        "category": "streak",
        "criteria": {"type": "streak", "value": 7},
        "points": 150,
    }
    with patch(f"{SERVICE}.achievements_collection") as achievements, \
         patch(f"{SERVICE}.user_achievements_collection") as records:
        achievements.find.return_value = make_cursor([week])
        records.find_one = AsyncMock(return_value=None)
        records.update_one = AsyncMock()
        response = await client.post(
            "/api/user/activity",
            json={"activity_type": "streak", "activity_data": {"current_streak": streak}},
        )

    assert response.status_code == 200
    assert response.json()["updated"][0]["progress"] == expected
    assert response.json()["updated"][0]["is_completed"] is False


@pytest.mark.asyncio
async def test_unknown_activity_type_is_400(client):
    response = await client.post("/api/user/activity", json={"activity_type": "yoga"})
    assert response.status_code == 400
