from __future__ import annotations

import os
import typing
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Sequence

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from cf_config_client.config.models import ClientSettings, SettingsLoadRequest


def _merge_into(base: MutableMapping[str, Any], override: Mapping[str, Any]) -> None:
    for key, value in override.items():
        current = base.get(key)
        if isinstance(value, Mapping) and isinstance(current, MutableMapping):
            _merge_into(current, value)
        else:
            base[key] = value


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _nested_model(annotation: Any) -> Optional[type[BaseModel]]:
    """Return the settings model behind a field annotation, unwrapping `Optional[...]`."""
    candidates = typing.get_args(annotation) or (annotation,)
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, BaseModel):
            return candidate
    return None


def _set_override(
    data: MutableMapping[str, Any],
    model: type[BaseModel],
    segments: Sequence[str],
    value: str,
) -> None:
    """
    Write `value` at `segments`, checking each segment against the settings models.

    Sub-settings that are absent or `None` (e.g. `logging.file`) are created on the way, so a single
    override such as `LOGGING__FILE__PATH` is enough to switch them on.
    """
    dotted = ".".join(segments)
    head, rest = segments[0], segments[1:]
    field = model.model_fields.get(head)
    if field is None:
        raise KeyError(f"Unknown settings key path: {dotted}")

    nested = _nested_model(field.annotation)
    if not rest:
        if nested is not None:
            raise TypeError(f"Environment overrides must target a scalar setting, got section: {dotted}")
        # pydantic coerces the string during validation
        data[head] = value
        return

    if nested is None:
        raise TypeError(f"Settings key path does not point to a section: {dotted}")
    section = data.get(head)
    if not isinstance(section, MutableMapping):
        section = {}
        data[head] = section
    try:
        _set_override(section, nested, rest, value)
    except KeyError:
        raise KeyError(f"Unknown settings key path: {dotted}") from None


def _env_overrides(env_prefix: str) -> list[tuple[list[str], str]]:
    overrides = []
    for name, value in sorted(os.environ.items()):
        if not name.startswith(env_prefix):
            continue
        segments = [part.lower() for part in name[len(env_prefix) :].split("__") if part]
        if not segments:
            raise ValueError(f"Invalid environment variable override name: {name}")
        overrides.append((segments, value))
    return overrides


class YamlSettingsLoader:
    """Builds `ClientSettings` from defaults, an optional YAML file, `.env` and prefixed env vars, in that order."""

    async def load(self, request: SettingsLoadRequest = SettingsLoadRequest()) -> ClientSettings:
        data: dict[str, Any] = ClientSettings().model_dump(mode="python")

        if request.yaml_path is not None:
            _merge_into(data, _read_settings_file(Path(request.yaml_path)))

        if request.dotenv_path is not None and Path(request.dotenv_path).exists():
            load_dotenv(dotenv_path=request.dotenv_path, override=False)

        for segments, value in _env_overrides(request.env_prefix):
            _set_override(data, ClientSettings, segments, value)
        return ClientSettings.model_validate(data)
