from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .core.security import AuthGate
from .services.credential_store import CredentialStore
from .services.key_ledger import KeyLedger
from .services.software_catalog import SoftwareCatalog

# auto_error=False so a missing token is reported as 401 by the gate itself
bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_catalog(request: Request) -> SoftwareCatalog:
    return request.app.state.catalog


def get_ledger(request: Request) -> KeyLedger:
    return request.app.state.ledger


def admin_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    gate: AuthGate = Depends(get_auth_gate),
) -> str:
    token = credentials.credentials if credentials else None
    return gate.authenticate(token)
