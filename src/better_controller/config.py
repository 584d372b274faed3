"""Settings for better-controller.

Settings are an explicit object, never process-wide state: `install()` puts
one on `app.state`, and controllers read it from the request's application.
They can be loaded from a YAML file; `BETTER_CONTROLLER_CONFIG` overrides
the default location.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

CONFIG_ENV_VAR = "BETTER_CONTROLLER_CONFIG"
DEFAULT_CONFIG_FILE = "better_controller.yaml"


class PaginationSettings(BaseModel):
    enabled: bool = True
    per_page: int = Field(25, ge=1)
    max_per_page: int = Field(100, ge=1)


class SerializationSettings(BaseModel):
    include_root: bool = False
    camelize_keys: bool = True


class ErrorHandlingSettings(BaseModel):
    log_errors: bool = True
    detailed_errors: bool = True


class HtmlSettings(BaseModel):
    """Template locations used by the HTML renderer."""

    template_dirs: list[str] = Field(default_factory=lambda: ["templates"])
    layout: str = "layout.html"
    flash_partial: str = "shared/flash"
    form_errors_partial: str = "shared/form_errors"


class TurboSettings(BaseModel):
    enabled: bool = True
    default_frame: str | None = None
    auto_flash: bool = True
    auto_form_errors: bool = True


class Settings(BaseModel):
    """Top-level better-controller settings.

    Attributes:
        api_version: Version stamped into JSON envelope `meta`.
        flash_messages: Flash texts keyed by `<controller>.<action>.<outcome>`,
            with `actions.success` and `errors.<category>` as fallbacks.
        mime_types: Extra format -> MIME type registrations.
    """

    api_version: str = "v1"
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    serialization: SerializationSettings = Field(default_factory=SerializationSettings)
    error_handling: ErrorHandlingSettings = Field(default_factory=ErrorHandlingSettings)
    html: HtmlSettings = Field(default_factory=HtmlSettings)
    turbo: TurboSettings = Field(default_factory=TurboSettings)
    flash_messages: dict[str, str] = Field(default_factory=dict)
    mime_types: dict[str, str] = Field(default_factory=dict)

    def flash_message(self, *keys: str) -> str | None:
        """Return the first configured flash message among `keys`."""
        for key in keys:
            message = self.flash_messages.get(key)
            if message:
                return message
        return None


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Pick the config file: explicit path, then env var, then cwd default."""
    if path is not None:
        return Path(path).expanduser()
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML.

    A missing file yields the defaults; a malformed one raises.
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        return Settings()

    with open(config_path, "r") as f:
        data: Any = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a mapping at the top level")
    return Settings.model_validate(data)


def dump_settings(settings: Settings, path: str | Path) -> Path:
    """Write settings to a YAML file and return its path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w") as f:
        yaml.safe_dump(settings.model_dump(), f, sort_keys=False)
    return target
