from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional, Tuple, Union

SiteId = Union[int, str]


class AvailabilityOptions(BaseModel):
    """Record key names and gap rules used by the engine.

    Accepts both snake_case names and the camelCase aliases
    (``idKey``, ``startKey``, ``endKey``, ``gapRules``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    gap_rules: Tuple[int, ...] = Field((1,), alias="gapRules", description="Gap thresholds in whole days")
    id_key: str = Field("siteId", alias="idKey")
    start_key: str = Field("startDate", alias="startKey")
    end_key: str = Field("endDate", alias="endKey")

    @field_validator("gap_rules")
    @classmethod
    def check_gap_rules(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if not v:
            raise ValueError("gap_rules must contain at least one value")
        if any(rule < 0 for rule in v):
            raise ValueError("gap_rules values must be >= 0")
        return v

    @property
    def min_gap(self) -> int:
        return min(self.gap_rules)


class AvailabilityRequest(BaseModel):
    start: str = Field(..., description="Start date YYYY-MM-DD")
    end: str = Field(..., description="End date YYYY-MM-DD (inclusive)")
    reservations: List[Dict[str, Any]] = Field(default_factory=list)
    site_ids: Optional[List[SiteId]] = Field(None, description="All known site ids, to include sites without reservations")
    options: Optional[Dict[str, Any]] = Field(None, description="Per-request option overrides")


class AvailabilityResponse(BaseModel):
    start: str
    end: str
    available: List[Any]
