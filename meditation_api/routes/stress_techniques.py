# meditation_api/routes/stress_techniques.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..controllers.stress_technique_controller import (
    list_techniques,
    get_technique,
    get_by_category,
    get_by_difficulty,
    get_by_duration,
    search_techniques,
    get_recommended,
    create_technique,
    update_technique,
    delete_technique,
    seed_techniques,
)
from ..schemas.stress_technique_schema import (
    StressTechniqueCreate,
    StressTechniqueUpdate,
    StressTechniqueOut,
    StressTechniquePage,
)
from ..utils.auth_utils import get_current_user, get_current_admin_user

router = APIRouter(prefix="/api/stress/techniques", tags=["Stress Techniques"])


@router.get("", response_model=StressTechniquePage, summary="List stress techniques")
async def get_all(
    page: Optional[int] = Query(1, ge=1),
    limit: Optional[int] = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
):
    return await list_techniques(page, limit)

@router.post("", response_model=StressTechniqueOut, status_code=201, summary="Create technique (admin)")
async def post_technique(payload: StressTechniqueCreate, admin: dict = Depends(get_current_admin_user)):
    return await create_technique(payload)

# fixed paths are declared before /{technique_id}
@router.post("/seed", summary="Seed the default technique catalogue (admin)")
async def post_seed(admin: dict = Depends(get_current_admin_user)):
    return await seed_techniques()

@router.get("/search", response_model=List[StressTechniqueOut], summary="Search by name, description or tag")
async def search(q: str = Query(..., min_length=1, max_length=100), current_user: dict = Depends(get_current_user)):
    return await search_techniques(q)

@router.get("/recommended", response_model=List[StressTechniqueOut], summary="Techniques matching my preferences")
async def recommended(current_user: dict = Depends(get_current_user)):
    return await get_recommended(current_user)

@router.get("/duration", response_model=List[StressTechniqueOut], summary="Techniques within a duration range")
async def by_duration(
    min_duration: int = Query(1, ge=1, le=120),
    max_duration: int = Query(120, ge=1, le=120),
    current_user: dict = Depends(get_current_user),
):
    return await get_by_duration(min_duration, max_duration)

@router.get("/category/{category}", response_model=List[StressTechniqueOut], summary="Techniques in a category")
async def by_category(category: str, current_user: dict = Depends(get_current_user)):
    return await get_by_category(category)

@router.get("/difficulty/{level}", response_model=List[StressTechniqueOut], summary="Techniques at a difficulty level")
async def by_difficulty(level: str, current_user: dict = Depends(get_current_user)):
    return await get_by_difficulty(level)

@router.get("/{technique_id}", response_model=StressTechniqueOut, summary="Get technique")
async def get_one(technique_id: str, current_user: dict = Depends(get_current_user)):
    return await get_technique(technique_id)

@router.put("/{technique_id}", response_model=StressTechniqueOut, summary="Update technique (admin)")
async def put_technique(technique_id: str, payload: StressTechniqueUpdate, admin: dict = Depends(get_current_admin_user)):
    return await update_technique(technique_id, payload)

@router.delete("/{technique_id}", summary="Delete technique (admin)")
async def remove_technique(technique_id: str, admin: dict = Depends(get_current_admin_user)):
    return await delete_technique(technique_id)
