# routes/deal_routes.py
from datetime import datetime
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status, Query, Body, Path
from pydantic import BeforeValidator
from pymongo.errors import PyMongoError
from core.authorization import AccessOptions, AuthContext, RestaurantRole, require_restaurant_role
from core.exceptions import AppException
from models.deal import DealCreate, DealEdit, DealExpire
from services.deal_reports import list_active_deals, list_expired_deals, get_deal_detail
from services.deal_service import create_deal, edit_deal, delete_deal, expire_deal, get_deal_template
from utils.logger import get_logger

logger = get_logger("Deal_Route")
router = APIRouter(prefix="/deals", tags=["Deals"])

# every deal endpoint is for the restaurant's super admin once the restaurant is accepted
deal_guard = require_restaurant_role(RestaurantRole.SUPER_ADMIN, AccessOptions(accepted_only=True))

def _blank_to_none(value):
    # "?current_date=" means no override
    if isinstance(value, str) and not value.strip():
        return None
    return value

CurrentDate = Annotated[
    datetime | None,
    BeforeValidator(_blank_to_none),
    Query(description="Reporting date override (ISO 8601); defaults to now"),
]

def _db_failure(action: str):
    logger.exception(f"Error while trying to {action}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

@router.get("/active")
async def api_active_deals(current_date: CurrentDate = None, auth: AuthContext = Depends(deal_guard)):
    try:
        return await list_active_deals(auth, current_date)
    except PyMongoError:
        raise _db_failure("list active deals")

@router.get("/expired")
async def api_expired_deals(current_date: CurrentDate = None, auth: AuthContext = Depends(deal_guard)):
    try:
        return await list_expired_deals(auth, current_date)
    except PyMongoError:
        raise _db_failure("list expired deals")

@router.get("/single/{deal_id}")
async def api_single_deal(deal_id: str = Path(...), current_date: CurrentDate = None, auth: AuthContext = Depends(deal_guard)):
    try:
        return await get_deal_detail(auth, deal_id, current_date)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("load deal")

@router.get("/use-template/{deal_id}")
async def api_deal_template(deal_id: str = Path(...), auth: AuthContext = Depends(deal_guard)):
    try:
        return await get_deal_template(auth, deal_id)
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("load deal template")

@router.post("/add")
async def api_add_deal(payload: DealCreate = Body(...), current_date: CurrentDate = None, auth: AuthContext = Depends(deal_guard)):
    try:
        await create_deal(auth, payload, current_date)
        return "Success"
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("create deal")

@router.patch("/edit/{deal_id}")
async def api_edit_deal(deal_id: str = Path(...), payload: DealEdit = Body(...), auth: AuthContext = Depends(deal_guard)):
    try:
        await edit_deal(auth, deal_id, payload)
        return "Success"
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("edit deal")

@router.post("/delete/{deal_id}")
async def api_delete_deal(deal_id: str = Path(...), auth: AuthContext = Depends(deal_guard)):
    try:
        await delete_deal(auth, deal_id)
        return "Success"
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("delete deal")

@router.patch("/expire/{deal_id}")
async def api_expire_deal(deal_id: str = Path(...), payload: DealExpire = Body(...), auth: AuthContext = Depends(deal_guard)):
    try:
        await expire_deal(auth, deal_id, payload.end_date)
        return "Success"
    except AppException:
        raise
    except PyMongoError:
        raise _db_failure("expire deal")
