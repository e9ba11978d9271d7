from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import admin_required, get_ledger
from ..schemas.auth import MessageResponse
from ..schemas.keys import KeyBatchResponse, KeyCreateRequest, KeyVerifyRequest, KeyVerifyResponse, KeyWithSoftware
from ..services.key_ledger import KeyLedger

router = APIRouter(prefix="/api", tags=["keys"])


@router.get("/keys", response_model=List[KeyWithSoftware], dependencies=[Depends(admin_required)])
def list_keys(ledger: KeyLedger = Depends(get_ledger)):
    return [
        KeyWithSoftware(**record.model_dump(), software=software)
        for record, software in ledger.list()
    ]


@router.post("/keys", response_model=KeyBatchResponse, dependencies=[Depends(admin_required)])
def generate_keys(payload: KeyCreateRequest, ledger: KeyLedger = Depends(get_ledger)):
    keys = ledger.generate(payload.software_id, payload.count, payload.validity_days)
    return KeyBatchResponse(keys=keys)


@router.delete("/keys/{key_id}", response_model=MessageResponse, dependencies=[Depends(admin_required)])
def delete_key(key_id: str, ledger: KeyLedger = Depends(get_ledger)):
    ledger.delete(key_id)
    return MessageResponse(message="Key deleted")


@router.post("/verify-key", response_model=KeyVerifyResponse)
def verify_key(payload: KeyVerifyRequest, ledger: KeyLedger = Depends(get_ledger)):
    result = ledger.verify(payload.code)
    body = KeyVerifyResponse(
        valid=result.valid,
        message=result.message,
        used=result.used,
        expired=result.expired,
        software=result.software,
        valid_until=result.valid_until,
    )
    if not result.valid:
        # Used or expired keys
        return JSONResponse(status_code=400, content=body.model_dump(mode="json", by_alias=True))
    return body
