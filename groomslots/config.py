"""
Configuration management using Pydantic models loaded from YAML.
"""

import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .domain.exceptions import ConfigurationError
from .domain.models import (
    DEFAULT_MAX_ADVANCE_DAYS,
    DEFAULT_MIN_ADVANCE_MINUTES,
    DEFAULT_SLOT_INTERVAL_MINUTES,
    DEFAULT_TIMEZONE,
    BlackoutSet,
    BlockedDate,
    BookingPolicy,
    BusinessCalendar,
    SchedulingSettings,
    Weekday,
    WeekdayHours,
)
from .domain.timeutils import MINUTES_PER_DAY, parse_date, parse_time_of_day

DEFAULT_CACHE_TTL_SECONDS = 300


def _date_to_string(value: Any) -> Any:
    """YAML turns unquoted 2024-12-25 into a date object."""
    if isinstance(value, datetime.date):
        return value.isoformat()
    return value


class _ConfigModel(BaseModel):
    """Accepts both snake_case and camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class DayHoursConfig(_ConfigModel):
    """Opening hours for one weekday."""
    open: str = "09:00"
    close: str = "17:00"
    is_open: bool = True

    @model_validator(mode="before")
    @classmethod
    def accept_ranges_format(cls, data: Any) -> Any:
        """
        Convert ``{isOpen, ranges: [{start, end}]}`` records.

        A day has a single open/close pair, so at most one range is accepted.
        """
        if not isinstance(data, dict) or "ranges" not in data:
            return data
        ranges = data.get("ranges") or []
        if not isinstance(ranges, list):
            raise ValueError("ranges must be a list of {start, end} mappings")
        if len(ranges) > 1:
            raise ValueError(
                f"ranges supports a single opening period per day, got {len(ranges)}"
            )
        first = ranges[0] if ranges else {}
        if not isinstance(first, dict):
            raise ValueError("ranges[0] must be a {start, end} mapping")
        return {
            "open": first.get("start", "09:00"),
            "close": first.get("end", "17:00"),
            "is_open": data.get("isOpen", data.get("is_open", True)),
        }

    @field_validator("open", "close")
    @classmethod
    def validate_time(cls, value: str, info: ValidationInfo) -> str:
        parse_time_of_day(value, info.field_name)
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DayHoursConfig":
        """Ensure an open day opens before it closes."""
        if self.is_open and parse_time_of_day(self.close) <= parse_time_of_day(self.open):
            raise ValueError(f"close ({self.close}) must be later than open ({self.open})")
        return self

    def to_weekday_hours(self) -> WeekdayHours:
        return WeekdayHours(
            open=parse_time_of_day(self.open, "open"),
            close=parse_time_of_day(self.close, "close"),
            is_open=self.is_open,
        )


class BusinessHoursConfig(_ConfigModel):
    """Weekly hours. Omitted days fall back to 09:00-17:00, Sunday closed."""
    monday: DayHoursConfig = Field(default_factory=DayHoursConfig)
    tuesday: DayHoursConfig = Field(default_factory=DayHoursConfig)
    wednesday: DayHoursConfig = Field(default_factory=DayHoursConfig)
    thursday: DayHoursConfig = Field(default_factory=DayHoursConfig)
    friday: DayHoursConfig = Field(default_factory=DayHoursConfig)
    saturday: DayHoursConfig = Field(default_factory=DayHoursConfig)
    sunday: DayHoursConfig = Field(default_factory=lambda: DayHoursConfig(is_open=False))

    def to_calendar(self) -> BusinessCalendar:
        return BusinessCalendar(
            hours={
                day: getattr(self, day.name.lower()).to_weekday_hours()
                for day in Weekday
            }
        )


class BookingConfig(_ConfigModel):
    """Booking window and padding policy."""
    min_advance_minutes: Optional[int] = Field(default=None, ge=0, le=168 * 60)
    min_advance_hours: Optional[int] = Field(default=None, ge=0, le=168)
    max_advance_days: int = Field(default=DEFAULT_MAX_ADVANCE_DAYS, ge=1, le=365)
    buffer_minutes: int = Field(default=0, ge=0, le=120)
    slot_interval_minutes: int = Field(default=DEFAULT_SLOT_INTERVAL_MINUTES, gt=0)

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer_step(cls, value: int) -> int:
        if value % 5 != 0:
            raise ValueError("buffer_minutes must be divisible by 5")
        return value

    @field_validator("slot_interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        if MINUTES_PER_DAY % value != 0:
            raise ValueError(f"slot_interval_minutes must divide {MINUTES_PER_DAY}, got {value}")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "BookingConfig":
        """Minimum notice must be shorter than the booking horizon."""
        if self.effective_min_advance_minutes >= self.max_advance_days * MINUTES_PER_DAY:
            raise ValueError("minimum advance notice must be less than the maximum advance window")
        return self

    @property
    def effective_min_advance_minutes(self) -> int:
        """Minutes take precedence over hours; neither set means the default."""
        if self.min_advance_minutes is not None:
            return self.min_advance_minutes
        if self.min_advance_hours is not None:
            return self.min_advance_hours * 60
        return DEFAULT_MIN_ADVANCE_MINUTES

    def to_policy(self) -> BookingPolicy:
        return BookingPolicy(
            min_advance_minutes=self.effective_min_advance_minutes,
            max_advance_days=self.max_advance_days,
            buffer_minutes=self.buffer_minutes,
            slot_interval_minutes=self.slot_interval_minutes,
        )


class BlockedDateConfig(_ConfigModel):
    date: str
    end_date: Optional[str] = None
    reason: str = Field(default="", max_length=200)

    @field_validator("date", "end_date", mode="before")
    @classmethod
    def coerce_yaml_dates(cls, value: Any) -> Any:
        return _date_to_string(value)

    @field_validator("date", "end_date")
    @classmethod
    def validate_date(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is not None:
            parse_date(value, info.field_name)
        return value

    @model_validator(mode="after")
    def validate_range(self) -> "BlockedDateConfig":
        if self.end_date is not None and parse_date(self.end_date) < parse_date(self.date):
            raise ValueError(f"blocked end date must be after start date: {self.date}")
        return self

    def to_blocked_date(self) -> BlockedDate:
        return BlockedDate(
            date=parse_date(self.date),
            end_date=parse_date(self.end_date, "end_date") if self.end_date else None,
            reason=self.reason,
        )


class BlackoutConfig(_ConfigModel):
    """One-off dates, blocked ranges and recurring weekdays (0=Sunday)."""
    explicit_dates: List[str] = Field(default_factory=list)
    blocked_dates: List[BlockedDateConfig] = Field(default_factory=list)
    recurring_weekdays: List[int] = Field(default_factory=list)

    @field_validator("explicit_dates", mode="before")
    @classmethod
    def coerce_yaml_dates(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_date_to_string(item) for item in value]
        return value

    @field_validator("explicit_dates")
    @classmethod
    def validate_explicit_dates(cls, value: List[str]) -> List[str]:
        for item in value:
            parse_date(item, "explicit_dates")
        return value

    @field_validator("recurring_weekdays")
    @classmethod
    def validate_recurring_weekdays(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in range and not repeated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"recurring_weekdays must be between 0 and 6, got {invalid_days}")
        if len(set(value)) != len(value):
            raise ValueError("recurring_weekdays must be unique")
        return value

    def to_blackout(self) -> BlackoutSet:
        return BlackoutSet(
            explicit_dates=frozenset(parse_date(item, "explicit_dates") for item in self.explicit_dates),
            recurring_weekdays=frozenset(Weekday(day) for day in self.recurring_weekdays),
            blocked_ranges=tuple(item.to_blocked_date() for item in self.blocked_dates),
        )


class AppConfig(_ConfigModel):
    """Application configuration."""
    timezone: str = DEFAULT_TIMEZONE
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    booking: BookingConfig = Field(default_factory=BookingConfig)
    blackout: BlackoutConfig = Field(default_factory=BlackoutConfig)
    cache_ttl_seconds: int = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Only named IANA zones are accepted."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    def to_settings(self) -> SchedulingSettings:
        return SchedulingSettings(
            calendar=self.business_hours.to_calendar(),
            policy=self.booking.to_policy(),
            blackout=self.blackout.to_blackout(),
            timezone=self.timezone,
        )

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "AppConfig":
        """
        Build configuration from an already-decoded document (e.g. a settings row).

        Raises:
            ConfigurationError: If validation fails
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid scheduling configuration:\n{exc}") from exc

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        return cls.from_mapping(data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
