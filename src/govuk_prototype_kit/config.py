"""Structured prototype configuration stored in ``app/config.json``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from govuk_prototype_kit.core.paths import CONFIG

DEFAULT_PORT = 3000
KIT_PLUGIN = "govuk-prototype-kit"


class PrototypeConfigError(RuntimeError):
    """Raised when ``app/config.json`` is unreadable or invalid."""


class PrototypeConfig(BaseModel):
    """Declarative prototype configuration.

    Unknown keys are kept so that settings added by plugins or by hand
    survive a load/save round trip.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    service_name: Optional[str] = Field(None, alias="serviceName")
    port: Optional[int] = Field(None, ge=1, le=65535)
    base_plugins: List[str] = Field(default_factory=list, alias="basePlugins")

    def to_json(self) -> str:
        """Serialise with stable key order and a trailing newline."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "PrototypeConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise PrototypeConfigError(f"Invalid prototype config: {exc}") from exc


def load_prototype_config(project_root: Path) -> PrototypeConfig | None:
    """Load ``app/config.json``; return None when it does not exist."""
    config_path = project_root / CONFIG
    if not config_path.exists():
        return None

    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise PrototypeConfigError(f"Failed to parse {config_path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise PrototypeConfigError(f"{config_path} must contain a JSON object")
    return PrototypeConfig.from_dict(payload)
