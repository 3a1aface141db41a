from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from typing import Optional
from pydantic import BaseModel
from db.db_operation import mongo_conn
from models.user import RestaurantAssociation
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("Dependencies")

# tells fastapi to expect a token in the request header after login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

# platform operators who review restaurant applications
PLATFORM_ADMIN = "superadmin"

class CurrentUser(BaseModel):
    """The authenticated principal resolved for a request."""
    id: str
    email: str
    full_name: Optional[str] = None
    email_confirmed: bool = False
    restaurant: Optional[RestaurantAssociation] = None
    platform_role: Optional[str] = None
    token_version: int = 0

def build_current_user(user: dict) -> CurrentUser:
    association = user.get("restaurant")
    if association:
        association = RestaurantAssociation(
            id=str(association["id"]) if association.get("id") else None,
            role=association.get("role")
        )
    return CurrentUser(
        id=str(user["_id"]),
        email=user["email"],
        full_name=user.get("full_name"),
        email_confirmed=bool(user.get("email_confirmed", False)),
        restaurant=association,
        platform_role=user.get("platform_role"),
        token_version=int(user.get("token_version", 0))
    )

async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """
    Decode token, validate, fetch user from DB, and ensure token_version matches.
    Returns CurrentUser object.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        logger.error("JWT Error: Invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    email: str = payload.get("sub")  # sub carries the user's email
    tv = payload.get("token_version", 0)
    if email is None:
        logger.debug("Email not found for the current user in token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: no email found"
        )
    user = await mongo_conn.users_collection.find_one({"email": email}, {"password": 0})
    if user is None:
        logger.warning(f"User not found for email: {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    if int(user.get("token_version", 0)) != tv:
        logger.warning(f"Token version mismatch for user: {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked"
        )
    current_user = build_current_user(user)
    logger.debug(f"Current user fetched successfully: {current_user.email}")
    return current_user

def require_role(*allowed_roles):
    """
    Ensures the current user holds one of the allowed platform roles.
    Platform roles are separate from restaurant roles.
    """
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)):
        if current_user.platform_role not in allowed_roles:
            logger.warning(f"{current_user.email} denied: requires platform role {allowed_roles}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Requires one of roles: {allowed_roles}"
            )
        return current_user

    return role_checker
