# jobboard/services/tokens.py
import time
from datetime import timedelta
from enum import Enum
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from jobboard.core.config import Settings
from jobboard.core.errors import InvalidToken, TokenExpired


class TokenPurpose(str, Enum):
    LOGIN = "login"
    CONFIRMATION = "confirmation"
    RESET = "reset"


class TokenService:
    """Issues and verifies purpose-scoped bearer tokens.

    Each purpose signs with its own secret and the purpose is also embedded
    as a claim, so a reset token presented as a login token fails signature
    verification before any claim is read.
    """

    def __init__(self, settings: Settings):
        self._algorithm = settings.JWT_ALGORITHM
        self._secrets = {
            TokenPurpose.LOGIN: settings.LOGIN_SECRET,
            TokenPurpose.CONFIRMATION: settings.CONFIRMATION_SECRET,
            TokenPurpose.RESET: settings.RESET_PASSWORD_SECRET,
        }
        self._lifetimes = {
            TokenPurpose.LOGIN: settings.LOGIN_TOKEN_EXPIRE_MINUTES,
            TokenPurpose.CONFIRMATION: settings.CONFIRMATION_TOKEN_EXPIRE_MINUTES,
            TokenPurpose.RESET: settings.RESET_TOKEN_EXPIRE_MINUTES,
        }

    def issue(self, subject: str, purpose: TokenPurpose, ttl: Optional[timedelta] = None) -> str:
        if not subject:
            raise ValueError("subject_blank")
        purpose = TokenPurpose(purpose)
        now = time.time()
        payload = {"sub": str(subject), "purpose": purpose.value, "iat": int(now)}
        if ttl is not None:
            payload["exp"] = int(now + ttl.total_seconds())
        return jwt.encode(payload, self._secrets[purpose], algorithm=self._algorithm)

    def verify(self, token: str, purpose: TokenPurpose) -> str:
        purpose = TokenPurpose(purpose)
        if not token:
            raise InvalidToken(purpose=purpose.value, reason="blank")
        try:
            claims = jwt.decode(token, self._secrets[purpose], algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenExpired(purpose=purpose.value)
        except JWTError as exc:
            raise InvalidToken(purpose=purpose.value, reason=str(exc))

        # jose only rejects exp strictly in the past; an exp equal to now is
        # already spent
        exp = claims.get("exp")
        if exp is not None and int(exp) <= time.time():
            raise TokenExpired(purpose=purpose.value)

        if claims.get("purpose") != purpose.value:
            raise InvalidToken(purpose=purpose.value, reason="purpose_mismatch")
        subject = claims.get("sub")
        if not subject:
            raise InvalidToken(purpose=purpose.value, reason="missing_sub")
        return subject

    def lifetime(self, purpose: TokenPurpose) -> Optional[timedelta]:
        minutes = self._lifetimes[TokenPurpose(purpose)]
        return timedelta(minutes=minutes) if minutes is not None else None

    def issue_login(self, subject: str) -> str:
        return self.issue(subject, TokenPurpose.LOGIN, self.lifetime(TokenPurpose.LOGIN))

    def issue_confirmation(self, subject: str) -> str:
        return self.issue(subject, TokenPurpose.CONFIRMATION, self.lifetime(TokenPurpose.CONFIRMATION))

    def issue_reset(self, subject: str) -> str:
        return self.issue(subject, TokenPurpose.RESET, self.lifetime(TokenPurpose.RESET))
