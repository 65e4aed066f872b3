"""
Account repository for the ledger accounts screen.

Provides functions to list, create, update and delete accounts. created_at
and updated_at are stamped here, not by callers.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from domain.account import Account, AccountType
from domain.errors import NotFound, ValidationError
from domain.time import utc_now
from repositories.document_store import ACCOUNTS, DocumentStore
from repositories.serialization import apply_changes, optional_datetime, parse_decimal, to_iso_utc


def _row_to_account(row: Mapping[str, Any]) -> Account:
    return Account(
        account_id=str(row["id"]),
        name=str(row.get("name") or ""),
        account_type=AccountType(row.get("account_type") or AccountType.CUSTOMER.value),
        code=row.get("code"),
        address=row.get("address"),
        city=row.get("city"),
        phone=row.get("phone"),
        email=row.get("email"),
        opening_debit=parse_decimal(row.get("opening_debit"), field="opening_debit"),
        opening_credit=parse_decimal(row.get("opening_credit"), field="opening_credit"),
        status=str(row.get("status") or "active"),
        created_at=optional_datetime(row, "created_at"),
        updated_at=optional_datetime(row, "updated_at"),
    )


def _account_to_row(account: Account) -> Dict[str, Any]:
    return {
        "name": account.name,
        "account_type": account.account_type.value,
        "code": account.code,
        "address": account.address,
        "city": account.city,
        "phone": account.phone,
        "email": account.email,
        "opening_debit": str(account.opening_debit),
        "opening_credit": str(account.opening_credit),
        "status": account.status,
        "created_at": to_iso_utc(account.created_at, name="created_at") if account.created_at else None,
        "updated_at": to_iso_utc(account.updated_at, name="updated_at") if account.updated_at else None,
    }


def _coerce_type(value: Any) -> AccountType:
    if isinstance(value, AccountType):
        return value
    try:
        return AccountType(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"Unknown account type: {value}") from e


def list_accounts(store: DocumentStore, account_type: Optional[AccountType] = None) -> List[Account]:
    accounts = [_row_to_account(row) for row in store.fetch_all(ACCOUNTS)]
    if account_type is not None:
        accounts = [a for a in accounts if a.account_type == account_type]
    return accounts


def get_account(store: DocumentStore, account_id: str) -> Optional[Account]:
    row = store.fetch_by_id(ACCOUNTS, account_id)
    return _row_to_account(row) if row is not None else None


def require_account(store: DocumentStore, account_id: str) -> Account:
    account = get_account(store, account_id)
    if account is None:
        raise NotFound("Account", account_id)
    return account


def create_account(store: DocumentStore, account: Account, *, now: Optional[datetime] = None) -> Account:
    stamp = now or utc_now()
    row = _account_to_row(replace(account, created_at=stamp, updated_at=stamp))
    if account.account_id:
        row["id"] = account.account_id
    return _row_to_account(store.insert(ACCOUNTS, row))


def update_account(
    store: DocumentStore,
    account_id: str,
    changes: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Account:
    current = require_account(store, account_id)
    fields = {k: v for k, v in changes.items() if k not in ("account_id", "created_at", "updated_at")}
    if "account_type" in fields:
        fields["account_type"] = _coerce_type(fields["account_type"])
    updated = apply_changes(current, {**fields, "updated_at": now or utc_now()})
    return _row_to_account(store.update(ACCOUNTS, account_id, _account_to_row(updated)))


def delete_account(store: DocumentStore, account_id: str) -> None:
    store.delete(ACCOUNTS, account_id)


__all__ = [
    "create_account",
    "delete_account",
    "get_account",
    "list_accounts",
    "require_account",
    "update_account",
]
