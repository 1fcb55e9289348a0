import logging
from typing import Annotated, Any, List, Mapping, Optional, Union

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigurationError
from .models import AvailabilityOptions

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = AvailabilityOptions()

# alias or field name -> field name, e.g. {"idKey": "id_key", "id_key": "id_key"}
_OPTION_NAMES = {}
for _name, _field in AvailabilityOptions.model_fields.items():
    _OPTION_NAMES[_name] = _name
    if _field.alias:
        _OPTION_NAMES[_field.alias] = _name


class Settings(BaseSettings):
    """Service defaults, read from SITE_AVAILABILITY_* env vars or .env."""

    model_config = SettingsConfigDict(env_prefix="SITE_AVAILABILITY_", env_file=".env", extra="ignore")

    # SITE_AVAILABILITY_GAP_RULES=2,3 or [2, 3]
    gap_rules: Annotated[List[int], NoDecode] = [1]
    id_key: str = "siteId"
    start_key: str = "startDate"
    end_key: str = "endDate"
    log_level: str = "INFO"

    @field_validator("gap_rules", mode="before")
    @classmethod
    def split_gap_rules(cls, v):
        if isinstance(v, str):
            parts = [p.strip() for p in v.strip().strip("[]").split(",")]
            return [p for p in parts if p]
        return v


def build_options(
    overrides: Union[AvailabilityOptions, Mapping[str, Any], None] = None,
    base: AvailabilityOptions = DEFAULT_OPTIONS,
) -> AvailabilityOptions:
    """Merge overrides onto base field by field. Unset (None) overrides keep the base value."""
    if overrides is None:
        return base
    if isinstance(overrides, AvailabilityOptions):
        return overrides

    data = base.model_dump()
    for key, value in overrides.items():
        name = _OPTION_NAMES.get(key)
        if name is None:
            raise ConfigurationError(f"Unknown option: {key!r}")
        if value is not None:
            data[name] = value

    try:
        return AvailabilityOptions.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid availability options: {e}") from e


def options_from_settings(settings: Optional[Settings] = None) -> AvailabilityOptions:
    settings = settings or Settings()
    options = build_options({
        "gap_rules": settings.gap_rules,
        "id_key": settings.id_key,
        "start_key": settings.start_key,
        "end_key": settings.end_key,
    })
    logger.info("Availability options: %s", options.model_dump())
    return options
