"""
Concept2 schemas.

Token set carried between the OAuth client and storage, and pydantic
models validating raw Logbook payloads.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pbdash.shared.constants import Sport
from pbdash.shared.exceptions import ValidationError


@dataclass(frozen=True)
class TokenSet:
    """
    OAuth token set.

    issued_at is epoch milliseconds stamped by us when the token endpoint
    answered, not a value returned by Concept2.
    """

    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    issued_at: Optional[int] = None
    scope: Optional[str] = None
    token_type: Optional[str] = "Bearer"

    @property
    def expires_at_ms(self) -> Optional[int]:
        if self.issued_at is None or self.expires_in is None:
            return None
        return self.issued_at + self.expires_in * 1000

    def __repr__(self):
        # Never leak token values into logs
        return f"<TokenSet expires_at_ms={self.expires_at_ms} scope={self.scope}>"


def _parse_logbook_datetime(value: Any) -> Any:
    """Logbook dates look like '2024-01-15 10:30:00' (no T, no zone)."""
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return value


class ResultPayload(BaseModel):
    """One entry of the results API `data` array."""

    model_config = ConfigDict(extra="allow")

    id: int
    type: Sport
    distance: int = Field(ge=0)
    time: int = Field(gt=0)
    date: datetime
    date_utc: Optional[datetime] = None
    timezone: Optional[str] = None
    workout_type: Optional[str] = None
    source: Optional[str] = None
    weight_class: Optional[str] = None
    verified: Optional[bool] = None
    ranked: Optional[bool] = None

    @field_validator("date", "date_utc", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _parse_logbook_datetime(v)

    @field_validator("date")
    @classmethod
    def local_wall_clock(cls, v: datetime) -> datetime:
        """Keep the athlete's local wall-clock time; seasons follow it."""
        return v.replace(tzinfo=None)

    @field_validator("date_utc")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


def parse_result(raw: Any) -> ResultPayload:
    """
    Validate one raw result.

    Raises:
        ValidationError: If the payload is malformed
    """
    record_id = str(raw.get("id")) if isinstance(raw, dict) else None
    try:
        return ResultPayload.model_validate(raw)
    except (PydanticValidationError, ValueError, TypeError) as e:
        raise ValidationError(f"Malformed result {record_id}: {e}", record_id=record_id) from e


class ResultsPageMeta(BaseModel):
    """`meta.pagination` block of the results API."""

    model_config = ConfigDict(extra="ignore")

    current_page: int = 1
    total_pages: int = 1
    total: Optional[int] = None
    count: Optional[int] = None
    per_page: Optional[int] = None


class Concept2Status(BaseModel):
    """Connection status response."""

    connected: bool
    scope: Optional[str] = None
    last_sync_at: Optional[datetime] = None
    reauth_required: bool = False
