"""
Account API Endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import get_store
from api.models import AccountCreate, AccountResponse, AccountUpdate
from api.responses import xlsx_download
from domain.account import Account, AccountType
from repositories.account_repository import (
    create_account,
    delete_account,
    list_accounts,
    require_account,
    update_account,
)
from repositories.document_store import DocumentStore
from services.export_service import export_rows_to_excel

router = APIRouter()


@router.get("/accounts", response_model=List[AccountResponse], summary="List Accounts")
def get_accounts(
    account_type: Optional[AccountType] = Query(None, description="Filter by account type"),
    store: DocumentStore = Depends(get_store),
):
    return [AccountResponse.model_validate(a) for a in list_accounts(store, account_type)]


@router.get("/accounts/export", summary="Export Accounts", response_class=Response)
def export_accounts(store: DocumentStore = Depends(get_store)):
    rows = [AccountResponse.model_validate(a).model_dump() for a in list_accounts(store)]
    return xlsx_download(export_rows_to_excel(rows, "Accounts"), "accounts.xlsx")


@router.get("/accounts/{account_id}", response_model=AccountResponse, summary="Get Account")
def get_account(account_id: str, store: DocumentStore = Depends(get_store)):
    return AccountResponse.model_validate(require_account(store, account_id))


@router.post("/accounts", response_model=AccountResponse, status_code=201, summary="Create Account")
def post_account(request: AccountCreate, store: DocumentStore = Depends(get_store)):
    return AccountResponse.model_validate(create_account(store, Account(**request.model_dump())))


@router.patch("/accounts/{account_id}", response_model=AccountResponse, summary="Update Account")
def patch_account(account_id: str, request: AccountUpdate, store: DocumentStore = Depends(get_store)):
    return AccountResponse.model_validate(update_account(store, account_id, request.model_dump(exclude_unset=True)))


@router.delete("/accounts/{account_id}", status_code=204, summary="Delete Account")
def remove_account(account_id: str, store: DocumentStore = Depends(get_store)):
    delete_account(store, account_id)
    return Response(status_code=204)
