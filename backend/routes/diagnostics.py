# backend/routes/diagnostics.py
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from models.users import User
from utils.tokenJWT import bearer_scheme, decode_token, get_current_user

router = APIRouter(prefix="/api/Test", tags=["Diagnostics"])

# Probe endpoints for checking the API and token handling from a client


@router.get("/public")
def public_endpoint():
    return {"message": "Public endpoint works", "timestamp": datetime.now(timezone.utc)}


@router.get("/protected")
def protected_endpoint(current_user: User = Depends(get_current_user)):
    return {
        "message": "Protected endpoint works",
        "userId": current_user.id,
        "email": current_user.email,
        "timestamp": datetime.now(timezone.utc),
    }


@router.get("/token-info")
def token_info(
    current_user: User = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
):
    # get_current_user already rejected invalid tokens
    claims = decode_token(credentials.credentials)
    return {
        "message": "Token is valid",
        "claims": [{"type": k, "value": v} for k, v in claims.items()],
        "isAuthenticated": True,
    }
