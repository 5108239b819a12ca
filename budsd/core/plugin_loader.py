"""Loading and validation of the YAML device protocol plugins."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from budsd.core.errors import PluginLoadError, PluginValidationError
from budsd.core.model import EnumFeature, Plugin, TransportSpec
from budsd.core.settings import plugin_dirs

_HEX_RE = re.compile(r"^[0-9a-f]+$")
_UUID_RE = re.compile(r"^[0-9a-f]{4}$|^[0-9a-f]{8}$|^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_MAX_PAYLOAD_BYTES = 512
_PLUGIN_SUFFIXES = (".yml", ".yaml")
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate keys and keeps on/off/yes/no as strings."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    first_char: [(tag, regexp) for tag, regexp in mappings if tag != "tag:yaml.org,2002:bool"]
    for first_char, mappings in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise PluginValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedPlugins:
    plugins: dict[str, Plugin]
    warnings: tuple[str, ...]


@lru_cache(maxsize=None)
def schema_validator(name: str) -> Any:
    """Return a validator for one of the packaged JSON schemas."""
    schema_text = resources.files("budsd.schemas").joinpath(name).read_text(encoding="utf-8")
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PluginLoadError(f"Could not read plugin file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise PluginValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise PluginValidationError(f"Plugin file {path} must contain a mapping at root")
    return loaded


def _normalize_hex(value: str, *, context: str) -> bytes:
    normalized = value.strip().lower().replace(" ", "")
    if not normalized:
        raise PluginValidationError(f"{context} must not be empty")
    if len(normalized) % 2 != 0:
        raise PluginValidationError(f"{context} must have even-length hex")
    if not _HEX_RE.match(normalized):
        raise PluginValidationError(f"{context} must contain only [0-9a-f]")
    payload = bytes.fromhex(normalized)
    if len(payload) > _MAX_PAYLOAD_BYTES:
        raise PluginValidationError(f"{context} exceeds max payload size {_MAX_PAYLOAD_BYTES} bytes")
    return payload


def _normalize_uuid(value: str, *, context: str) -> str:
    normalized = value.strip().lower()
    if not _UUID_RE.match(normalized):
        raise PluginValidationError(f"{context} must be a 16-bit, 32-bit, or 128-bit UUID string")
    return normalized


def _normalize_bool(value: Any, *, context: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise PluginValidationError(f"{context} must be boolean true/false")


def _build_transport(doc: dict[str, Any], source: Path | Traversable) -> TransportSpec:
    spec = doc["transport"]
    context = f"{doc['id']}.transport"
    if spec["type"] == "rfcomm":
        return TransportSpec(
            type="rfcomm",
            channel=int(spec["channel"]),
            timeout_s=float(spec.get("timeout_s", 3.0)),
        )
    if spec["type"] == "ble":
        notify = spec.get("notify_char_uuid")
        return TransportSpec(
            type="ble",
            service_uuid=_normalize_uuid(spec["service_uuid"], context=f"{context}.service_uuid"),
            write_char_uuid=_normalize_uuid(spec["write_char_uuid"], context=f"{context}.write_char_uuid"),
            notify_char_uuid=_normalize_uuid(notify, context=f"{context}.notify_char_uuid") if notify else None,
            write_with_response=_normalize_bool(
                spec.get("write_with_response", True),
                context=f"{context}.write_with_response",
            ),
            timeout_s=float(spec.get("timeout_s", 5.0)),
        )
    raise PluginValidationError(f"Unsupported transport type '{spec['type']}' in {source}")


def _build_plugin(doc: dict[str, Any], source: Path | Traversable) -> Plugin:
    try:
        schema_validator("plugin.schema.json").validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise PluginValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    features: dict[str, EnumFeature] = {}
    for feature_name, feature_spec in doc["features"].items():
        features[feature_name] = EnumFeature(
            type="enum",
            values={
                value_name: _normalize_hex(hex_payload, context=f"{doc['id']}.{feature_name}.{value_name}")
                for value_name, hex_payload in feature_spec["values"].items()
            },
        )

    return Plugin(
        id=doc["id"],
        name=doc["name"],
        transport=_build_transport(doc, source),
        features=features,
    )


def _iter_packaged_plugin_paths() -> list[Traversable]:
    plugin_root = resources.files("budsd.plugins")
    items = [item for item in plugin_root.iterdir() if item.name.endswith(_PLUGIN_SUFFIXES)]
    return sorted(items, key=lambda p: p.name)


def _iter_user_plugin_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in plugin_dirs():
        if directory.is_dir():
            paths.extend(sorted(p for p in directory.iterdir() if p.suffix in _PLUGIN_SUFFIXES))
    return paths


def load_plugins() -> LoadedPlugins:
    plugins: dict[str, Plugin] = {}
    warnings: list[str] = []

    for path in _iter_packaged_plugin_paths():
        plugin = _build_plugin(_read_yaml(path), path)
        plugins[plugin.id] = plugin

    for path in _iter_user_plugin_paths():
        plugin = _build_plugin(_read_yaml(path), path)
        if plugin.id in plugins:
            warning = f"User plugin '{plugin.id}' overrides packaged plugin"
            LOGGER.warning(warning)
            warnings.append(warning)
        plugins[plugin.id] = plugin

    LOGGER.debug("Loaded plugins: %s", ", ".join(sorted(plugins)))
    return LoadedPlugins(plugins=plugins, warnings=tuple(warnings))
