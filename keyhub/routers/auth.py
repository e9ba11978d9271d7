import logging

from fastapi import APIRouter, Depends

from ..core.errors import Unauthenticated
from ..core.security import AuthGate
from ..dependencies import admin_required, get_auth_gate, get_credential_store
from ..schemas.auth import ChangePasswordRequest, LoginRequest, MessageResponse, TokenResponse
from ..services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    credentials: CredentialStore = Depends(get_credential_store),
    gate: AuthGate = Depends(get_auth_gate),
):
    if not credentials.verify(payload.username, payload.password):
        logger.info(f"Failed login for '{payload.username}'")
        raise Unauthenticated("Invalid username or password")
    return TokenResponse(token=gate.issue_token(payload.username))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    _: str = Depends(admin_required),
    credentials: CredentialStore = Depends(get_credential_store),
):
    credentials.rotate(payload.current_password, payload.new_password)
    return MessageResponse(message="Password updated")
