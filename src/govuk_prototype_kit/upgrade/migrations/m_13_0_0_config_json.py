"""Migration: Convert app/config.js into app/config.json.

Pre-13 prototypes configured the kit with an executable CommonJS module::

    module.exports = {
      // Service name used in header. Eg: 'Renew your passport'
      serviceName: 'Renew your passport',
      port: '3000',
      useAuth: 'true',
      ...
    }

From 13.0.0 the configuration is declarative JSON. Only the fields that still
mean something are carried over: the service name, the port (as a number) and
the list of enabled plugins. Flags such as ``useAuth``, ``useHttps`` or
``useBrowserSync`` moved to environment variables or went away and are
dropped, along with the legacy module itself.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List

from packaging.version import Version

from govuk_prototype_kit.config import DEFAULT_PORT, KIT_PLUGIN, PrototypeConfig
from govuk_prototype_kit.core.paths import CONFIG, LEGACY_CONFIG, MANIFEST
from govuk_prototype_kit.errors import TransformError

from .base import FileChange, MigrationStep

MIGRATION_ID = "13.0.0_config_json"
MIGRATION_VERSION = "13.0.0"
MIGRATION_DESCRIPTION = "Convert app/config.js into app/config.json"

DEFAULT_SERVICE_NAME = "Service name goes here"

_LINE_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_PROPERTY = re.compile(
    r"""(?P<key>[A-Za-z_$][\w$]*|'[^']*'|"[^"]*")\s*:\s*"""
    r"""(?P<value>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|-?\d+(?:\.\d+)?|true|false|null)"""
    r"""\s*(?=,|\}|$)""",
    re.MULTILINE,
)
_ESCAPE = re.compile(r"\\(.)")


def _decode_value(raw: str) -> Any:
    if raw[0] in "'\"":
        return _ESCAPE.sub(r"\1", raw[1:-1])
    if raw in ("true", "false"):
        return raw == "true"
    if raw == "null":
        return None
    return float(raw) if "." in raw else int(raw)


def parse_legacy_config(source: str) -> Dict[str, Any]:
    """Extract the literal properties of a legacy ``module.exports`` object.

    Properties whose value is not a literal (``process.env.PORT || 3000``,
    function calls, nested objects) are ignored.
    """
    if "module.exports" not in source:
        raise TransformError(str(LEGACY_CONFIG), "no module.exports found")

    stripped = _BLOCK_COMMENT.sub("", _LINE_COMMENT.sub("", source))
    properties: Dict[str, Any] = {}
    for match in _PROPERTY.finditer(stripped):
        key = match.group("key").strip("'\"")
        properties[key] = _decode_value(match.group("value"))
    return properties


def derive_service_name(package_name: object) -> str:
    """Turn a package name like ``renew-passport`` into ``Renew passport``."""
    if not isinstance(package_name, str) or not package_name.strip():
        return DEFAULT_SERVICE_NAME
    words = re.sub(r"[-_]+", " ", package_name.split("/")[-1]).strip()
    if not words:
        return DEFAULT_SERVICE_NAME
    return words[0].upper() + words[1:]


def _port(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_PORT
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return DEFAULT_PORT


def convert_legacy_config(
    source: str,
    package_name: object = None,
    existing: Dict[str, Any] | None = None,
) -> str:
    """Return the ``app/config.json`` content for a legacy config module.

    Keys already present in an existing ``config.json`` win over values read
    from the legacy module.
    """
    legacy = parse_legacy_config(source)

    service_name = legacy.get("serviceName")
    if not isinstance(service_name, str) or not service_name.strip():
        service_name = derive_service_name(package_name)

    payload: Dict[str, Any] = {
        "basePlugins": [KIT_PLUGIN],
        "port": _port(legacy.get("port")),
        "serviceName": service_name,
    }
    if existing:
        payload.update(existing)
    return PrototypeConfig.from_dict(payload).to_json()


def _transform(project) -> List[FileChange]:
    source = project.read_text(LEGACY_CONFIG)
    if source is None:
        return []

    manifest = project.read_json(MANIFEST)
    package_name = manifest.get("name") if isinstance(manifest, dict) else None

    existing_text = project.read_text(CONFIG)
    existing = None
    if existing_text is not None:
        try:
            existing = json.loads(existing_text)
        except ValueError as exc:
            raise TransformError(str(CONFIG), f"invalid JSON: {exc}") from exc
        if not isinstance(existing, dict):
            raise TransformError(str(CONFIG), "expected a JSON object")

    return [
        FileChange(Path(CONFIG), convert_legacy_config(source, package_name, existing)),
        FileChange(Path(LEGACY_CONFIG), None),
    ]


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
