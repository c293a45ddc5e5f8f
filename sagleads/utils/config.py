# sagleads/utils/config.py

from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from sagleads.utils.errors import ConfigError

DEFAULT_DATE_FORMATS = ["%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%B %d, %Y", "%b %d, %Y"]

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    google_maps_api_key: str = ""
    db_path: str = "data/sagleads.db"
    audit_log: str = "data/audit.jsonl"
    template_path: Optional[str] = None
    date_formats: List[str] = Field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))
    dayfirst: bool = False
    geocode_timeout: float = 10.0
    log_level: str = "INFO"


def load_settings(env: Optional[dict] = None) -> Settings:
    """
    Build Settings from environment variables (or an explicit mapping, for tests).
    Unset variables keep the model defaults.
    """
    env = os.environ if env is None else env
    values: dict = {}

    if env.get("GOOGLE_MAPS_API_KEY"):
        values["google_maps_api_key"] = env["GOOGLE_MAPS_API_KEY"].strip()
    if env.get("SAGLEADS_DB_PATH"):
        values["db_path"] = env["SAGLEADS_DB_PATH"]
    if env.get("SAGLEADS_AUDIT_LOG"):
        values["audit_log"] = env["SAGLEADS_AUDIT_LOG"]
    if env.get("SAGLEADS_TEMPLATE_PATH"):
        values["template_path"] = env["SAGLEADS_TEMPLATE_PATH"]
    if env.get("SAGLEADS_DATE_FORMATS"):
        values["date_formats"] = [f for f in env["SAGLEADS_DATE_FORMATS"].split(";") if f.strip()]
    if env.get("SAGLEADS_DAYFIRST"):
        values["dayfirst"] = env["SAGLEADS_DAYFIRST"].strip().lower() in _TRUTHY
    if env.get("SAGLEADS_GEOCODE_TIMEOUT"):
        values["geocode_timeout"] = env["SAGLEADS_GEOCODE_TIMEOUT"]
    if env.get("SAGLEADS_LOG_LEVEL"):
        values["log_level"] = env["SAGLEADS_LOG_LEVEL"].upper()

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
