"""
Currency Models

A Currency is loaded once from the versioned catalog file and never
changes for the lifetime of the process. The JSON document uses the
camelCase keys shared with the mobile apps; the Python attributes are
snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Currency(BaseModel):
    """
    A supported currency.

    Identity is the ISO 4217 code: two Currency objects with the same
    code compare equal.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    code: str = Field(
        ...,
        pattern="^[A-Z]{3}$",
        description="ISO 4217 currency code"
    )
    symbol: str = Field(
        ...,
        min_length=1,
        description="Currency symbol for display"
    )
    display_name: str = Field(
        ...,
        alias="displayName",
        min_length=1,
        description="English display name (e.g., 'UAE Dirham')"
    )
    short_name: str = Field(
        ...,
        alias="shortName",
        description="Short name for compact views (e.g., 'Dirham')"
    )
    locale_identifier: str = Field(
        ...,
        alias="localeIdentifier",
        description="Locale used for this currency (e.g., 'ar_AE')"
    )
    is_rtl: bool = Field(
        default=False,
        alias="isRTL",
        description="Whether the symbol is written right-to-left"
    )
    voice_keywords: tuple[str, ...] = Field(
        default_factory=tuple,
        alias="voiceKeywords",
        description="Spoken or written keywords that identify this currency"
    )

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("voice_keywords", mode="before")
    @classmethod
    def normalize_keywords(cls, v):
        """Lower-case keywords and drop blanks, keeping file order."""
        if v is None:
            return ()
        seen = []
        for keyword in v:
            cleaned = str(keyword).strip().lower()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return tuple(seen)

    @property
    def region(self) -> Optional[str]:
        """Country part of the locale identifier (e.g., 'AE' for 'ar_AE')."""
        parts = self.locale_identifier.replace("-", "_").split("_")
        if len(parts) >= 2 and parts[-1]:
            return parts[-1].upper()
        return None

    @property
    def decimal_places(self) -> int:
        return 2

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    def __str__(self) -> str:
        return f"{self.symbol} {self.code}"


class CurrencyCatalogFile(BaseModel):
    """
    The versioned catalog document.

    Shape: { version, lastUpdated, currencies: [...] }
    """
    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(..., min_length=1)
    last_updated: str = Field(..., alias="lastUpdated")
    currencies: list[Currency] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_codes(self) -> "CurrencyCatalogFile":
        """Exactly one entry per currency code."""
        seen: set[str] = set()
        for currency in self.currencies:
            if currency.code in seen:
                raise ValueError(f"Duplicate currency code in catalog: {currency.code}")
            seen.add(currency.code)
        return self
