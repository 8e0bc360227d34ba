from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from appinsight.models.revenue import Platform

_COUNTRY_RE = re.compile(r"^[A-Za-z]{2}$")
_PACKAGE_RE = re.compile(r"^[A-Za-z0-9_]+(\.[A-Za-z0-9_]+)*$")


def _as_list(value: Any) -> Any:
    """Normalise a single identifier into a one-element list."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _validate_country(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not _COUNTRY_RE.match(value):
        raise ValueError(f"country must be a two-letter country code, got {value!r}")
    return value


def _validate_package_name(value: str) -> str:
    value = value.strip()
    if not _PACKAGE_RE.match(value):
        raise ValueError(f"Invalid Android package name: {value!r}")
    return value


# ---------------------------------------------------------------------------
# Revenue intelligence
# ---------------------------------------------------------------------------


class IosRevenueInput(BaseModel):
    app_ids: list[int] = Field(min_length=1)
    include_competitors: bool = True
    country: str | None = None

    @field_validator("app_ids", mode="before")
    @classmethod
    def normalise_app_ids(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str | None) -> str | None:
        return _validate_country(v)


class AndroidRevenueInput(BaseModel):
    package_names: list[str] = Field(min_length=1)
    include_competitors: bool = True
    country: str | None = None

    @field_validator("package_names", mode="before")
    @classmethod
    def normalise_package_names(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator("package_names")
    @classmethod
    def validate_package_names(cls, v: list[str]) -> list[str]:
        return [_validate_package_name(name) for name in v]

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str | None) -> str | None:
        return _validate_country(v)


class BatchItem(BaseModel):
    """Outcome for a single identifier in a revenue batch."""

    identifier: int | str
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    degraded: bool = False  # True when data holds a partial extraction


class BatchSummary(BaseModel):
    platform: Platform
    total: int
    successful_count: int
    failed_count: int
    results: list[BatchItem]


# ---------------------------------------------------------------------------
# App Store
# ---------------------------------------------------------------------------


class AppStoreSearchInput(BaseModel):
    term: str = Field(min_length=1, max_length=500)
    num: int = Field(default=50, ge=1, le=200)
    page: int = Field(default=1, ge=1)
    country: str = "us"
    lang: str = "en-us"

    @field_validator("term")
    @classmethod
    def strip_term(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("term must not be empty")
        return v

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        return _validate_country(v) or "us"


class AppStoreLookupInput(BaseModel):
    """Identify an App Store app by numeric track id or bundle id."""

    id: int | None = Field(default=None, ge=1)
    app_id: str | None = None
    country: str = "us"
    lang: str | None = None

    @model_validator(mode="after")
    def require_identifier(self) -> AppStoreLookupInput:
        if self.id is None and not self.app_id:
            raise ValueError("Either id or app_id must be provided")
        return self

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        return _validate_country(v) or "us"


class AppStoreReviewsInput(AppStoreLookupInput):
    page: int = Field(default=1, ge=1, le=10)
    sort: Literal["recent", "helpful"] = "recent"


class AppStoreListInput(BaseModel):
    collection: Literal[
        "newapplications",
        "newfreeapplications",
        "newpaidapplications",
        "topfreeapplications",
        "topfreeipadapplications",
        "topgrossingapplications",
        "topgrossingipadapplications",
        "toppaidapplications",
        "toppaidipadapplications",
    ] = "topfreeapplications"
    category: int | None = Field(default=None, ge=1)
    country: str = "us"
    num: int = Field(default=50, ge=1, le=200)
    lang: str | None = None
    full_detail: bool = False

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        return _validate_country(v) or "us"


class AppStoreDeveloperInput(BaseModel):
    dev_id: str = Field(pattern=r"^\d+$")
    country: str = "us"
    lang: str | None = None

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        return _validate_country(v) or "us"


# ---------------------------------------------------------------------------
# Google Play
# ---------------------------------------------------------------------------


class GooglePlaySearchInput(BaseModel):
    term: str = Field(min_length=1, max_length=500)
    price: Literal["all", "free", "paid"] = "all"
    num: int = Field(default=20, ge=1, le=250)
    lang: str = "en"
    country: str = "us"

    @field_validator("term")
    @classmethod
    def strip_term(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("term must not be empty")
        return v


class GooglePlayAppInput(BaseModel):
    app_id: str
    lang: str = "en"
    country: str = "us"

    @field_validator("app_id")
    @classmethod
    def validate_app_id(cls, v: str) -> str:
        return _validate_package_name(v)


class GooglePlayReviewsInput(GooglePlayAppInput):
    sort: Literal["newest", "most_relevant"] = "newest"
    num: int = Field(default=100, ge=1, le=1000)
    score: int | None = Field(default=None, ge=1, le=5)


# ---------------------------------------------------------------------------
# Shared outputs
# ---------------------------------------------------------------------------


class AppListOutput(BaseModel):
    results: list[dict[str, Any]]


class AppDetailsOutput(BaseModel):
    app: dict[str, Any]


class ReviewsOutput(BaseModel):
    reviews: list[dict[str, Any]]


class PermissionsOutput(BaseModel):
    app_id: str
    permissions: dict[str, list[str]]
