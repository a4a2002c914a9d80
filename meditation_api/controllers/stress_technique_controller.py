# meditation_api/controllers/stress_technique_controller.py
from typing import Optional

from ..errors import NotFoundError
from ..schemas.stress_technique_schema import StressTechniqueCreate, StressTechniqueUpdate
from ..services.stress_technique_service import stress_technique_service


async def list_techniques(page: Optional[int] = None, limit: Optional[int] = None):
    return await stress_technique_service.list_techniques(page, limit)


async def get_technique(technique_id: str):
    return await stress_technique_service.get_technique(technique_id)


async def get_by_category(category: str):
    return await stress_technique_service.by_category(category)


async def get_by_difficulty(level: str):
    return await stress_technique_service.by_difficulty(level)


async def get_by_duration(min_duration: int, max_duration: int):
    return await stress_technique_service.by_duration(min_duration, max_duration)


async def search_techniques(q: str):
    return await stress_technique_service.search(q)


async def get_recommended(current_user: dict):
    return await stress_technique_service.recommended_for_user(str(current_user["_id"]))


# ---- admin ----
async def create_technique(payload: StressTechniqueCreate):
    return await stress_technique_service.create_technique(payload.model_dump())


async def update_technique(technique_id: str, payload: StressTechniqueUpdate):
    return await stress_technique_service.update_technique(technique_id, payload.model_dump(exclude_none=True))


async def delete_technique(technique_id: str):
    if not await stress_technique_service.delete_technique(technique_id):
        raise NotFoundError("Technique not found")
    return {"message": "Technique deleted"}


async def seed_techniques():
    return await stress_technique_service.seed_techniques()
