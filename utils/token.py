from jose import JWTError, jwt
from datetime import timedelta
from settings.config import settings
from utils.dates import utcnow

VERIFY_ALGORITHM = "HS256"
VERIFY_PURPOSE = "email_verification"

def create_email_verification_token(email: str) -> str:
    """
    Creates short-lived JWT for email verification
    """
    payload = {
        "sub": email,
        "purpose": VERIFY_PURPOSE,
        "exp": utcnow() + timedelta(minutes=settings.VERIFY_TOKEN_EXPIRE_MINUTES),
        "iat": utcnow()
    }
    return jwt.encode(payload, settings.VERIFY_SECRET_KEY, algorithm=VERIFY_ALGORITHM)

def decode_email_verification_token(token: str) -> str:
    """
    Returns the email the token was issued for.
    Raises ValueError if the token is invalid, expired or not a verification token.
    """
    try:
        payload = jwt.decode(token, settings.VERIFY_SECRET_KEY, algorithms=[VERIFY_ALGORITHM])
    except JWTError:
        raise ValueError("Invalid or expired verification token")
    if payload.get("purpose") != VERIFY_PURPOSE or not payload.get("sub"):
        raise ValueError("Invalid verification token")
    return payload["sub"]
