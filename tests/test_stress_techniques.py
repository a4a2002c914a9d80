"""Stress technique catalogue: queries, recommendations and admin writes."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from meditation_api.errors import ConflictError, NotFoundError, ValidationError
from meditation_api.services.stress_technique_service import DEFAULT_TECHNIQUES, StressTechniqueService

from conftest import insert_result, make_cursor

MODULE = "meditation_api.services.stress_technique_service"
CONTROLLER = "meditation_api.controllers.stress_technique_controller"


def _technique(name="Box Breathing", category="breathing", difficulty="beginner", minutes=4):
    return {
        "_id": ObjectId(),
        "name": name,
        "description": "desc",
        "category": category,
        "difficulty_level": difficulty,
        "duration_minutes": minutes,
        "steps": [],
        "benefits": [],
        "tags": ["calm"],
        "effectiveness_rating": 3,
        "recommended_frequency": "as-needed",
    }


class TestQueries:

    def setup_method(self):
        self.service = StressTechniqueService()

    @pytest.mark.asyncio
    async def test_paginated_listing_sorted_by_name(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            cursor = make_cursor([_technique()])
            collection.find.return_value = cursor
            collection.count_documents = AsyncMock(return_value=11)
            result = await self.service.list_techniques(page=2, limit=5)

        cursor.sort.assert_called_once_with("name", 1)
        cursor.skip.assert_called_once_with(5)
        cursor.limit.assert_called_once_with(5)
        assert result["pagination"] == {"total": 11, "page": 2, "limit": 5, "pages": 3}
        assert result["techniques"][0]["name"] == "Box Breathing"
        assert "_id" not in result["techniques"][0]

    @pytest.mark.asyncio
    async def test_malformed_id_is_rejected(self):
        with pytest.raises(ValidationError):
            await self.service.get_technique("not-an-id")

    @pytest.mark.asyncio
    async def test_missing_technique(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.find_one = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await self.service.get_technique(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_unknown_category_and_difficulty(self):
        with pytest.raises(ValidationError):
            await self.service.by_category("dancing")
        with pytest.raises(ValidationError):
            await self.service.by_difficulty("expert")

    @pytest.mark.asyncio
    async def test_duration_range(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.find.return_value = make_cursor([])
            await self.service.by_duration(2, 10)

        assert collection.find.call_args.args[0] == {"duration_minutes": {"$gte": 2, "$lte": 10}}

    @pytest.mark.asyncio
    async def test_inverted_duration_range_is_rejected(self):
        with pytest.raises(ValidationError):
            await self.service.by_duration(10, 2)

    @pytest.mark.asyncio
    async def test_long_query_uses_text_search(self):
        doc = {**_technique(), "score": 1.5}
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.find.return_value = make_cursor([doc])
            result = await self.service.search("  breathing ")

        assert collection.find.call_args.args[0] == {"$text": {"$search": "breathing"}}
        assert "score" not in result[0]

    @pytest.mark.asyncio
    async def test_short_query_is_an_escaped_substring_match(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.find.return_value = make_cursor([])
            await self.service.search("4.7")

        query = collection.find.call_args.args[0]
        assert query["$or"][0] == {"name": {"$regex": r"4\.7", "$options": "i"}}
        assert {"tags": {"$regex": r"4\.7", "$options": "i"}} in query["$or"]

    @pytest.mark.asyncio
    async def test_blank_query_is_rejected(self):
        with pytest.raises(ValidationError):
            await self.service.search("   ")


class TestRecommended:

    def setup_method(self):
        self.service = StressTechniqueService()
        self.user_id = str(ObjectId())

    @pytest.mark.asyncio
    async def test_defaults_to_beginner_breathing_and_meditation(self):
        with patch(f"{MODULE}.users_collection") as users, \
             patch(f"{MODULE}.stress_techniques_collection") as collection:
            users.find_one = AsyncMock(return_value={"_id": ObjectId(self.user_id)})
            collection.find.return_value = make_cursor([_technique()])
            result = await self.service.recommended_for_user(self.user_id)

        assert collection.find.call_args.args[0] == {
            "category": {"$in": ["breathing", "meditation"]},
            "difficulty_level": "beginner",
        }
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_uses_stored_preferences(self):
        prefs = {"preferred_categories": ["visualization"], "difficulty_level": "advanced"}
        with patch(f"{MODULE}.users_collection") as users, \
             patch(f"{MODULE}.stress_techniques_collection") as collection:
            users.find_one = AsyncMock(return_value={"stress_preferences": prefs})
            collection.find.return_value = make_cursor([_technique(category="visualization", difficulty="advanced")])
            await self.service.recommended_for_user(self.user_id)

        assert collection.find.call_args.args[0] == {
            "category": {"$in": ["visualization"]},
            "difficulty_level": "advanced",
        }

    @pytest.mark.asyncio
    async def test_falls_back_to_three_beginner_techniques(self):
        fallback = make_cursor([_technique(name=f"T{i}") for i in range(3)])
        with patch(f"{MODULE}.users_collection") as users, \
             patch(f"{MODULE}.stress_techniques_collection") as collection:
            users.find_one = AsyncMock(return_value={"stress_preferences": {"difficulty_level": "advanced"}})
            collection.find.side_effect = [make_cursor([]), fallback]
            result = await self.service.recommended_for_user(self.user_id)

        assert collection.find.call_args.args[0] == {"difficulty_level": "beginner"}
        fallback.limit.assert_called_once_with(3)
        assert [t["name"] for t in result] == ["T0", "T1", "T2"]

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        with patch(f"{MODULE}.users_collection") as users:
            users.find_one = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await self.service.recommended_for_user(self.user_id)


class TestWrites:

    def setup_method(self):
        self.service = StressTechniqueService()

    @pytest.mark.asyncio
    async def test_create_applies_model_defaults(self):
        oid = ObjectId()
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.insert_one = AsyncMock(return_value=insert_result(oid))
            result = await self.service.create_technique(
                {"name": "Box Breathing", "description": "d", "category": "breathing", "duration_minutes": 4}
            )

        assert result["id"] == str(oid)
        assert result["created_at"] is not None
        assert result["effectiveness_rating"] == 3

    @pytest.mark.asyncio
    async def test_duplicate_name_is_a_conflict(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("dup"))
            with pytest.raises(ConflictError):
                await self.service.create_technique(
                    {"name": "Box Breathing", "description": "d", "category": "breathing", "duration_minutes": 4}
                )

    @pytest.mark.asyncio
    async def test_empty_update_is_rejected(self):
        with pytest.raises(ValidationError):
            await self.service.update_technique(str(ObjectId()), {"name": None})

    @pytest.mark.asyncio
    async def test_update_of_missing_technique(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.find_one_and_update = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await self.service.update_technique(str(ObjectId()), {"duration_minutes": 8})

    @pytest.mark.asyncio
    async def test_seed_upserts_by_name(self):
        with patch(f"{MODULE}.stress_techniques_collection") as collection:
            collection.bulk_write = AsyncMock(
                return_value=MagicMock(matched_count=0, modified_count=0, upserted_ids={0: 1, 1: 2})
            )
            result = await self.service.seed_techniques()

        ops = collection.bulk_write.await_args.args[0]
        assert len(ops) == len(DEFAULT_TECHNIQUES)
        assert result == {"matched": 0, "modified": 0, "upserted": 2, "total": len(DEFAULT_TECHNIQUES)}

    def test_default_catalogue_names_are_unique(self):
        names = [t["name"] for t in DEFAULT_TECHNIQUES]
        assert len(names) == len(set(names))


# ---- HTTP ----
@pytest.mark.asyncio
async def test_writes_require_admin(client):
    response = await client.post(
        "/api/stress/techniques",
        json={"name": "Box Breathing", "description": "d", "category": "breathing", "duration_minutes": 4},
    )
    assert response.status_code == 403
    assert (await client.delete(f"/api/stress/techniques/{ObjectId()}")).status_code == 403


@pytest.mark.asyncio
async def test_admin_creates_technique(app, client, admin_user):
    from meditation_api.utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: admin_user
    created = {**_technique(), "id": str(ObjectId())}
    created.pop("_id")
    with patch(f"{CONTROLLER}.stress_technique_service") as service:
        service.create_technique = AsyncMock(return_value=created)
        response = await client.post(
            "/api/stress/techniques",
            json={"name": "Box Breathing", "description": "d", "category": "breathing", "duration_minutes": 4},
        )

    assert response.status_code == 201
    assert response.json()["id"] == created["id"]
    payload = service.create_technique.await_args.args[0]
    assert payload["difficulty_level"] == "beginner"
    assert payload["recommended_frequency"] == "as-needed"


@pytest.mark.asyncio
async def test_invalid_technique_payload_is_400(app, client, admin_user):
    from meditation_api.utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: admin_user
    response = await client.post(
        "/api/stress/techniques",
        json={"name": "Long", "description": "d", "category": "breathing", "duration_minutes": 500},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_missing_technique_is_404(app, client, admin_user):
    from meditation_api.utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: admin_user
    with patch(f"{CONTROLLER}.stress_technique_service") as service:
        service.delete_technique = AsyncMock(return_value=False)
        response = await client.delete(f"/api/stress/techniques/{ObjectId()}")

    assert response.status_code == 404
    assert response.json() == {"error": "Technique not found"}


@pytest.mark.asyncio
async def test_fixed_paths_are_not_taken_as_ids(client, user):
    with patch(f"{CONTROLLER}.stress_technique_service") as service:
        service.recommended_for_user = AsyncMock(return_value=[])
        service.search = AsyncMock(return_value=[])
        service.by_category = AsyncMock(return_value=[])
        assert (await client.get("/api/stress/techniques/recommended")).status_code == 200
        assert (await client.get("/api/stress/techniques/search", params={"q": "calm"})).status_code == 200
        assert (await client.get("/api/stress/techniques/category/breathing")).status_code == 200

    service.recommended_for_user.assert_awaited_once_with(str(user["_id"]))
    service.search.assert_awaited_once_with("calm")


@pytest.mark.asyncio
async def test_unknown_category_over_http(client):
    response = await client.get("/api/stress/techniques/category/dancing")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid technique category"}


@pytest.mark.asyncio
async def test_catalogue_requires_login(anon_client):
    response = await anon_client.get("/api/stress/techniques")
    assert response.status_code == 401
