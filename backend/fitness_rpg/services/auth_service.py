"""Identity token verification.

Accounts live with the external identity provider; the API only checks that
a bearer token's subject is the user being acted on.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from fitness_rpg.config import Settings

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days


class AuthService:
    """Service for identity token operations."""
    
    def __init__(self, settings: Settings):
        self.secret_key = settings.auth_secret_key
        self.algorithm = settings.auth_algorithm
    
    def create_access_token(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT for ``user_id`` (dev tooling and tests)."""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        return jwt.encode({"sub": user_id, "exp": expire}, self.secret_key, algorithm=self.algorithm)
    
    def decode_token(self, token: str) -> Optional[dict]:
        """Decode and validate a JWT token."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
    
    def user_id_from_token(self, token: str) -> Optional[str]:
        payload = self.decode_token(token)
        if not payload:
            return None
        return payload.get("sub") or None
