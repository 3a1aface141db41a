# routes/restaurant_routes.py
from fastapi import APIRouter, Depends, HTTPException, status, Body, Path
from pymongo.errors import PyMongoError
from core.authorization import AccessOptions, AuthContext, RestaurantRole, require_restaurant_role
from core.dependencies import get_current_user, CurrentUser
from core.exceptions import AppException
from models.restaurant import RestaurantCreate, RestaurantOut, RestaurantUpdate, StaffAssignRequest
from services.restaurant_service import (
    assign_staff,
    create_restaurant_application,
    remove_staff,
    restaurant_summary,
    submit_application,
    update_restaurant,
)
from utils.logger import get_logger

logger = get_logger("Restaurant_Route")
router = APIRouter(prefix="/restaurant", tags=["Restaurant"])

member_guard = require_restaurant_role(RestaurantRole.USER)
application_guard = require_restaurant_role(RestaurantRole.SUPER_ADMIN, AccessOptions(application_only=True))
owner_guard = require_restaurant_role(RestaurantRole.SUPER_ADMIN, AccessOptions(accepted_only=True))
admin_guard = require_restaurant_role(RestaurantRole.ADMIN, AccessOptions(accepted_only=True))

def _db_failure(action: str):
    logger.exception(f"Error while trying to {action}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

@router.post("/create", response_model=RestaurantOut)
async def api_create_restaurant(payload: RestaurantCreate = Body(...), current_user: CurrentUser = Depends(get_current_user)):
    """Start a restaurant application; the caller becomes its super admin."""
    try:
        return await create_restaurant_application(payload, current_user)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("create restaurant")

@router.get("/me", response_model=RestaurantOut)
async def api_my_restaurant(auth: AuthContext = Depends(member_guard)):
    return restaurant_summary(auth.restaurant, auth.role.value)

@router.post("/application/submit")
async def api_submit_application(auth: AuthContext = Depends(application_guard)):
    try:
        return await submit_application(auth)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("submit application")

@router.patch("/application", response_model=RestaurantOut)
async def api_update_application(payload: RestaurantUpdate = Body(...), auth: AuthContext = Depends(application_guard)):
    """Edit the application while it is still being drafted."""
    try:
        return await update_restaurant(auth, payload)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("update restaurant application")

@router.patch("/details", response_model=RestaurantOut)
async def api_update_restaurant(payload: RestaurantUpdate = Body(...), auth: AuthContext = Depends(owner_guard)):
    try:
        return await update_restaurant(auth, payload)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("update restaurant")

@router.post("/staff")
async def api_assign_staff(payload: StaffAssignRequest = Body(...), auth: AuthContext = Depends(owner_guard)):
    try:
        return await assign_staff(auth, payload.user_id, payload.role)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("assign staff")

@router.post("/staff/{user_id}/remove")
async def api_remove_staff(user_id: str = Path(...), auth: AuthContext = Depends(admin_guard)):
    try:
        return await remove_staff(auth, user_id)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("remove staff")
