from fastapi import APIRouter, Depends

from ..controllers.auth_controller import (
    register_user,
    login_with_email_password,
    get_authenticated_user,
    update_stress_preferences,
)
from ..schemas.auth_schema import (
    # Requests
    RegisterRequest,
    LoginRequest,
    StressPreferencesUpdate,

    # Responses
    AuthResponse,
    UserOut,
)
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# ---------------------------
# Signup / login
# ---------------------------

@router.post("/register", response_model=AuthResponse, status_code=201, summary="Register a new user")
async def register(payload: RegisterRequest):
    return await register_user(email=payload.email, username=payload.username, password=payload.password)

@router.post("/login", response_model=AuthResponse, summary="Login with email & password")
async def login(payload: LoginRequest):
    return await login_with_email_password(payload.email, payload.password)

# ---------------------------
# Current user
# ---------------------------

@router.get("/me", response_model=UserOut, summary="Get the authenticated user")
async def me(current_user: dict = Depends(get_current_user)):
    return await get_authenticated_user(current_user)

@router.put("/me/stress-preferences", response_model=UserOut, summary="Update stress technique preferences")
async def put_stress_preferences(payload: StressPreferencesUpdate, current_user: dict = Depends(get_current_user)):
    return await update_stress_preferences(current_user, payload.model_dump(exclude_none=True))
