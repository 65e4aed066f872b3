"""
Domain: company settings shown on exported report headers and footers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class CompanySettings:
    name: str = ""
    location: Optional[str] = None
    company_email: Optional[str] = None
    company_phone: Optional[str] = None
    logo_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    def contact_lines(self) -> list[str]:
        return [
            f"Address: {self.location or ''}",
            f"Email: {self.company_email or ''}",
            f"Phone: {self.company_phone or ''}",
        ]
