from db.db_operation import mongo_conn
from core.exceptions import AppException, BadRequestError, NotFoundError
from fastapi import status
from models.user import UserCreate, UserLogin
from utils.dates import utcnow
from utils.hash import hash_password, verify_password
from utils.jwt_handler import create_access_token
from utils.logger import get_logger
from utils.token import create_email_verification_token, decode_email_verification_token

logger = get_logger("USER_SERVICE")

async def create_user(user: UserCreate):
    """
    Register an unconfirmed user and return the email verification token.
    Delivering the token by email is left to the mailer.
    """
    logger.info(f"User create request received for email: {user.email}")
    users_collection = mongo_conn.users_collection
    if await users_collection.find_one({"email": user.email}):
        raise AppException("Email already registered", status.HTTP_409_CONFLICT)

    now = utcnow()
    user_dict = {
        "email": user.email,
        "full_name": user.full_name,
        "password": hash_password(user.password),
        "email_confirmed": False,
        "restaurant": None,
        "token_version": 0,
        "created_at": now,
        "updated_at": now,
        "verification_sent_at": now
    }
    result = await users_collection.insert_one(user_dict)
    logger.info(f"User inserted into database with id: {result.inserted_id}")
    verify_token = create_email_verification_token(user.email)
    return {"id": str(result.inserted_id), "email": user.email, "verification_token": verify_token}

async def confirm_email(token: str):
    try:
        email = decode_email_verification_token(token)
    except ValueError as e:
        raise BadRequestError(str(e))
    result = await mongo_conn.users_collection.update_one(
        {"email": email},
        {"$set": {"email_confirmed": True, "verified_at": utcnow(), "updated_at": utcnow()}}
    )
    if result.matched_count == 0:
        raise NotFoundError("User not found")
    logger.info("Email confirmed", extra={"email": email})
    return {"message": "email_confirmed", "email": email}

async def login_user(credentials: UserLogin):
    db_user = await mongo_conn.users_collection.find_one({"email": credentials.email})
    if not db_user or not verify_password(credentials.password, db_user["password"]):
        logger.warning(f"Login failed for {credentials.email}")
        raise AppException("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    access_token = create_access_token({
        "id": str(db_user["_id"]),
        "sub": db_user["email"],
        "token_version": int(db_user.get("token_version", 0))
    })
    logger.info(f"Login successful: {credentials.email}")
    return {"access_token": access_token, "token_type": "bearer"}
