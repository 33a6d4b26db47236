"""Application settings with Pydantic Settings validation.

Secrets (Slack tokens) are loaded from the environment or a .env file.
Non-sensitive configuration may also come from config/*.yaml files; values
set in the environment always win over YAML.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Final, cast

import pytz
import yaml
from pydantic import AliasChoices, Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.logging_config import get_logger
from src.domain.models import BotConfig

SPRINT_START_DATE_FORMAT: Final[str] = "%d %m %Y"
"""Day, month, year separated by spaces, e.g. ``15 01 2024``."""

DAILY_LIMIT_DEFAULT: Final[int] = 5
SPRINT_DURATION_DAYS_DEFAULT: Final[int] = 14
MENTION_PREFIX_LENGTH_DEFAULT: Final[int] = 12
TZ_DEFAULT: Final[str] = "Asia/Ho_Chi_Minh"

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_all_configs(config_dir: Path = Path("config")) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    ``main.yaml`` is loaded first, then every other ``*.yaml`` file in
    alphabetical order; later files override earlier ones.

    Returns:
        Merged configuration dictionary (empty when the directory is missing)
    """
    if not config_dir.is_dir():
        return {}

    main_path = config_dir / "main.yaml"
    yaml_files = [main_path] if main_path.exists() else []
    yaml_files += sorted(f for f in config_dir.glob("*.yaml") if f.name != "main.yaml")

    merged_config: dict[str, Any] = {}
    for yaml_file in yaml_files:
        try:
            with open(yaml_file, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "config_file_load_failed",
                path=str(yaml_file),
                error=str(e),
            )
            continue

        if not isinstance(file_config, dict):
            logger.warning("config_file_not_a_mapping", path=str(yaml_file))
            continue

        merged_config = deep_merge(merged_config, file_config)
        logger.debug("config_file_loaded", path=str(yaml_file))

    logger.info("config_load_complete", file_count=len(yaml_files))
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Env var names follow the deployed bot (``MAX_EVERYDAY``,
    ``SPRINT_DURATION``...); the field names are used everywhere in code.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    slack_bot_token: SecretStr = Field(
        ...,
        validation_alias=AliasChoices("slack_bot_token", "slack_token"),
        description="Slack Bot User OAuth Token",
    )
    slack_verification_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("slack_verification_token", "verification_token"),
        description="Legacy Events API verification token (optional)",
    )
    slack_signing_secret: SecretStr | None = Field(
        default=None, description="Slack signing secret for v0 signatures (optional)"
    )

    # === NON-SENSITIVE CONFIG (env or config/*.yaml) ===

    emoji_name: str = Field(default="taco", description="Token emoji without colons")
    daily_limit: int = Field(
        default=DAILY_LIMIT_DEFAULT,
        gt=0,
        validation_alias=AliasChoices("daily_limit", "max_everyday"),
        description="Tokens each user may give per local day",
    )
    emoji_cap: int | None = Field(
        default=None, ge=1, description="Per-message token cap (None = uncapped)"
    )
    sprint_start_date: str = Field(
        default="01 01 2024",
        description="Sprint anchor date in 'DD MM YYYY' form",
    )
    sprint_duration_days: int = Field(
        default=SPRINT_DURATION_DAYS_DEFAULT,
        gt=0,
        validation_alias=AliasChoices("sprint_duration_days", "sprint_duration"),
        description="Sprint length in days",
    )

    spreadsheet_id: str = Field(default="", description="Google Sheets ledger key")
    spreadsheet_url: str = Field(default="", description="Shareable ledger URL")
    google_credentials_file: str = Field(
        default="credentials.json",
        description="Service account JSON used by gspread",
    )
    giving_summary_range: str = Field(default="Pivot Table 1!A3:D")
    receiving_summary_range: str = Field(default="Pivot Table 2!A3:D")
    ledger_write_range: str = Field(default="A2")

    tz_default: str = Field(default=TZ_DEFAULT, description="Operating time zone")
    mention_prefix_length: int = Field(default=MENTION_PREFIX_LENGTH_DEFAULT, ge=0)
    serialize_giver_quota: bool = Field(
        default=True,
        description="Serialize quota read and append per giver within the process",
    )
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("slack_bot_token", mode="before")
    @classmethod
    def _ensure_secret(
        cls, value: SecretStr | str | None, info: ValidationInfo
    ) -> SecretStr:
        if value is None:
            raise ValueError(f"{info.field_name} must be provided")

        if isinstance(value, SecretStr):
            secret_value = value.get_secret_value()
        else:
            secret_value = str(value)

        if not secret_value.strip():
            raise ValueError(f"{info.field_name} must not be empty")

        return value if isinstance(value, SecretStr) else SecretStr(secret_value)

    @field_validator(
        "slack_verification_token", "slack_signing_secret", "emoji_cap", mode="before"
    )
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("emoji_name")
    @classmethod
    def _strip_colons(cls, value: str) -> str:
        name = value.strip().strip(":")
        if not name:
            raise ValueError("emoji_name must not be empty")
        return name

    @field_validator("sprint_start_date")
    @classmethod
    def _check_sprint_start(cls, value: str) -> str:
        datetime.strptime(value.strip(), SPRINT_START_DATE_FORMAT)
        return value.strip()

    @field_validator("tz_default")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        bot_config = config.get("bot") or {}
        _assign("emoji_name", bot_config.get("emoji_name"))
        _assign("daily_limit", bot_config.get("daily_limit"))
        _assign("emoji_cap", bot_config.get("emoji_cap"))
        _assign("mention_prefix_length", bot_config.get("mention_prefix_length"))
        _assign("serialize_giver_quota", bot_config.get("serialize_giver_quota"))

        sprint_config = config.get("sprint") or {}
        _assign("sprint_start_date", sprint_config.get("start_date"))
        _assign("sprint_duration_days", sprint_config.get("duration_days"))

        ledger_config = config.get("ledger") or {}
        _assign("spreadsheet_id", ledger_config.get("spreadsheet_id"))
        _assign("spreadsheet_url", ledger_config.get("spreadsheet_url"))
        _assign("google_credentials_file", ledger_config.get("credentials_file"))
        _assign("giving_summary_range", ledger_config.get("giving_summary_range"))
        _assign("receiving_summary_range", ledger_config.get("receiving_summary_range"))
        _assign("ledger_write_range", ledger_config.get("write_range"))

        processing_config = config.get("processing") or {}
        _assign("tz_default", processing_config.get("tz_default"))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))

    def to_bot_config(self) -> BotConfig:
        """Build the immutable runtime configuration.

        Raises:
            ValueError: If a YAML-sourced value does not validate
        """
        sprint_start = datetime.strptime(
            str(self.sprint_start_date).strip(), SPRINT_START_DATE_FORMAT
        ).date()
        return BotConfig(
            emoji_name=str(self.emoji_name).strip(":"),
            daily_limit=self.daily_limit,
            emoji_cap=self.emoji_cap,
            sprint_start=sprint_start,
            sprint_duration_days=self.sprint_duration_days,
            timezone=self.tz_default,
            spreadsheet_url=self.spreadsheet_url,
            giving_summary_range=self.giving_summary_range,
            receiving_summary_range=self.receiving_summary_range,
            mention_prefix_length=self.mention_prefix_length,
            serialize_giver_quota=self.serialize_giver_quota,
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
