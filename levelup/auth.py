from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
import bcrypt
import os

# API Key protecting /api endpoints (JWT sessions are handled by the auth gateway)
# In production set it through the environment or a secret store
API_KEY = os.getenv("LEVELUP_API_KEY", "your-secret-key-change-me")

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

