# routes/admin_routes.py
from fastapi import APIRouter, Depends, HTTPException, status, Body, Path
from pymongo.errors import PyMongoError
from core.dependencies import PLATFORM_ADMIN, CurrentUser, require_role
from core.exceptions import AppException
from models.restaurant import RestaurantStatusChange
from services.restaurant_service import change_restaurant_status
from utils.logger import get_logger

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger("Admin_Route")

@router.patch("/restaurants/{restaurant_id}/status")
async def api_change_restaurant_status(
    restaurant_id: str = Path(..., description="Restaurant ObjectId string"),
    payload: RestaurantStatusChange = Body(...),
    current_admin: CurrentUser = Depends(require_role(PLATFORM_ADMIN))
):
    """
    Review a restaurant (platform admin only): accept or reject a submitted
    application, take an accepted restaurant live, disable or re-enable it.
    """
    try:
        return await change_restaurant_status(restaurant_id, payload.status, current_admin.email)
    except AppException:
        raise
    except PyMongoError:
        logger.exception("Error in api_change_restaurant_status")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")
