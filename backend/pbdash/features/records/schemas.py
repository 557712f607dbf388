"""
Personal-record schemas.

PRTypeDefinition is the validated form of a catalog row; extraction only
ever sees definitions that passed validation. The *Response models are
the API surface.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic import ValidationError as PydanticValidationError

from pbdash.shared.constants import MetricType, Sport
from pbdash.shared.exceptions import ValidationError
from pbdash.shared.formulas import format_tenths


class PRTypeDefinition(BaseModel):
    """
    One record definition.

    time metric     -> target_distance fixed ("2000m row, fastest time")
    distance metric -> target_time fixed ("60 min row, farthest distance")
    """

    model_config = ConfigDict(from_attributes=True)

    activity_key: str = Field(min_length=1, max_length=64)
    activity_name: str = Field(min_length=1)
    sport: Sport
    metric_type: MetricType
    target_distance: Optional[int] = Field(default=None, gt=0)
    target_time: Optional[int] = Field(default=None, gt=0)
    display_order: int = 0
    is_active: bool = True

    @model_validator(mode="after")
    def check_fixed_dimension(self) -> "PRTypeDefinition":
        if self.metric_type is MetricType.TIME:
            if self.target_distance is None or self.target_time is not None:
                raise ValueError("time records need target_distance and no target_time")
        else:
            if self.target_time is None or self.target_distance is not None:
                raise ValueError("distance records need target_time and no target_distance")
        return self


def parse_definition(source: Any) -> PRTypeDefinition:
    """
    Validate a catalog row or dict.

    Raises:
        ValidationError: If the definition is malformed
    """
    key = getattr(source, "activity_key", None)
    if key is None and isinstance(source, dict):
        key = source.get("activity_key")
    try:
        return PRTypeDefinition.model_validate(source)
    except (PydanticValidationError, ValueError) as e:
        raise ValidationError(f"Malformed record definition {key}: {e}", record_id=key) from e


class PRTypeUpdate(BaseModel):
    """Athlete customization of one definition."""
    is_active: Optional[bool] = None
    display_order: Optional[int] = None


class PRTypeResponse(PRTypeDefinition):
    pass


class PREventResponse(BaseModel):
    """Record event as exposed by the API."""

    model_config = ConfigDict(from_attributes=True)

    results_id: int
    activity_key: str
    sport: str
    metric_type: str
    metric_value: int
    achieved_at: datetime
    season_identifier: str
    pace_per_500m: Optional[int] = None
    pr_scope: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def display_value(self) -> str:
        """Time as [h:]mm:ss.t, distance as meters."""
        if self.metric_type == MetricType.TIME.value:
            return format_tenths(self.metric_value)
        return f"{self.metric_value}m"

    @computed_field
    @property
    def display_pace(self) -> Optional[str]:
        if self.pace_per_500m is None:
            return None
        return f"{format_tenths(self.pace_per_500m)}/500m"
