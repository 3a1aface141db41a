from fastapi import APIRouter, HTTPException, Query, status
from models.user import UserCreate, UserLogin, SignupResponse
from pymongo.errors import PyMongoError
from services.user_service import create_user, confirm_email, login_user
from utils.logger import get_logger

logger = get_logger("AUTH_ROUTE")

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/signup", response_model=SignupResponse)
async def signup(user: UserCreate):
    logger.info(f"Attempting to sign up user with email: {user.email}")
    try:
        return await create_user(user)
    except PyMongoError as e:
        logger.error(f"Database error during user signup: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database error")

@router.get("/verify-email")
async def verify_email(token: str = Query(...)):
    return await confirm_email(token)

@router.post("/login")
async def login(user: UserLogin):
    logger.info(f"Login attempt for: {user.email}")
    return await login_user(user)
