"""
Company settings repository.

The settings collection holds a single document ("website") read by the
report exporters for header and footer text.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from domain.company import CompanySettings
from domain.time import utc_now
from repositories.document_store import SETTINGS, DocumentStore
from repositories.serialization import apply_changes, optional_datetime, to_iso_utc

SETTINGS_DOCUMENT_ID = "website"


def _row_to_settings(row: Mapping[str, Any]) -> CompanySettings:
    return CompanySettings(
        name=str(row.get("name") or ""),
        location=row.get("location"),
        company_email=row.get("company_email"),
        company_phone=row.get("company_phone"),
        logo_url=row.get("logo_url"),
        updated_at=optional_datetime(row, "updated_at"),
    )


def get_company_settings(store: DocumentStore) -> CompanySettings:
    """Current settings; an empty CompanySettings when none were saved yet."""

    row = store.fetch_by_id(SETTINGS, SETTINGS_DOCUMENT_ID)
    return _row_to_settings(row) if row is not None else CompanySettings()


def save_company_settings(
    store: DocumentStore,
    changes: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> CompanySettings:
    current = get_company_settings(store)
    updated = apply_changes(
        current,
        {**{k: v for k, v in changes.items() if k != "updated_at"}, "updated_at": now or utc_now()},
    )
    row = {
        "name": updated.name,
        "location": updated.location,
        "company_email": updated.company_email,
        "company_phone": updated.company_phone,
        "logo_url": updated.logo_url,
        "updated_at": to_iso_utc(updated.updated_at, name="updated_at"),
    }

    if store.fetch_by_id(SETTINGS, SETTINGS_DOCUMENT_ID) is None:
        saved = store.insert(SETTINGS, {"id": SETTINGS_DOCUMENT_ID, **row})
    else:
        saved = store.update(SETTINGS, SETTINGS_DOCUMENT_ID, row)
    return _row_to_settings(saved)


__all__ = ["SETTINGS_DOCUMENT_ID", "get_company_settings", "save_company_settings"]
