from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import admin_required, get_catalog
from ..models.software import Software
from ..schemas.software import SoftwareDeleteResponse, SoftwareRequest
from ..services.software_catalog import SoftwareCatalog

router = APIRouter(prefix="/api/software", tags=["software"], dependencies=[Depends(admin_required)])


@router.get("", response_model=List[Software])
def list_software(catalog: SoftwareCatalog = Depends(get_catalog)):
    return catalog.list()


@router.post("", response_model=Software)
def create_software(payload: SoftwareRequest, catalog: SoftwareCatalog = Depends(get_catalog)):
    return catalog.create(payload.name, payload.file_type, payload.download_urls)


@router.put("/{software_id}", response_model=Software)
def update_software(software_id: str, payload: SoftwareRequest, catalog: SoftwareCatalog = Depends(get_catalog)):
    return catalog.update(software_id, payload.name, payload.file_type, payload.download_urls)


@router.delete("/{software_id}", response_model=SoftwareDeleteResponse)
def delete_software(software_id: str, catalog: SoftwareCatalog = Depends(get_catalog)):
    removed = catalog.delete(software_id)
    return SoftwareDeleteResponse(message="Software deleted", deleted_keys=removed)
