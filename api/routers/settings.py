"""
Company Settings API Endpoints.

Name, address and contact details printed on exported reports.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_store
from api.models import CompanySettingsResponse, CompanySettingsUpdate
from repositories.document_store import DocumentStore
from repositories.settings_repository import get_company_settings, save_company_settings

router = APIRouter()


@router.get("/settings", response_model=CompanySettingsResponse, summary="Get Company Settings")
def get_settings_document(store: DocumentStore = Depends(get_store)):
    return CompanySettingsResponse.model_validate(get_company_settings(store))


@router.put("/settings", response_model=CompanySettingsResponse, summary="Save Company Settings")
def put_settings_document(request: CompanySettingsUpdate, store: DocumentStore = Depends(get_store)):
    saved = save_company_settings(store, request.model_dump(exclude_unset=True))
    return CompanySettingsResponse.model_validate(saved)
