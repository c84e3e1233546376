"""Configuration loading with pydantic-settings.

Sources, from lowest to highest precedence:

- built-in defaults from ``asmgraph.config.models``
- global YAML, ``~/.config/asmgraph/config.yaml``
- project YAML, ``<root>/.asmgraph/config.yaml`` (or the file given with ``-c``)
- ``ASMGRAPH__SECTION__KEY`` environment variables
- keyword overrides passed to ``load_config``

The two YAML files are deep-merged before pydantic-settings sees them, so a
project file may override a single key of a section the global file sets.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from asmgraph.config.constants import CONFIG_DIR_NAME
from asmgraph.config.models import (
    AsmGraphConfig,
    BuildConfig,
    LoggingConfig,
    ParseConfig,
    QueryConfig,
    StorageConfig,
)
from asmgraph.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/asmgraph/config.yaml").expanduser()
ENV_PREFIX = "ASMGRAPH__"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in ``path``; empty when the file is absent or blank."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class _YamlSource(PydanticBaseSettingsSource):
    """Serves the merged YAML sections to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], sections: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._sections = sections

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        section = self._sections.get(field_name)
        return section, field_name, section is not None

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._sections.items() if v is not None}


def _make_settings_class(sections: dict[str, Any]) -> type[BaseSettings]:
    """Settings class bound to one load's YAML; nothing is shared between loads."""

    class AsmGraphSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix=ENV_PREFIX,
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        build: BuildConfig = BuildConfig()
        parse: ParseConfig = ParseConfig()
        query: QueryConfig = QueryConfig()
        storage: StorageConfig = StorageConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First source wins
            return (init_settings, env_settings, _YamlSource(settings_cls, sections))

    return AsmGraphSettings


def load_config(
    project_root: Path | None = None,
    *,
    config_file: Path | None = None,
    **kwargs: Any,
) -> AsmGraphConfig:
    """Resolve the configuration for a project.

    Args:
        project_root: Directory holding ``.asmgraph/config.yaml``; defaults to
            the current directory.
        config_file: YAML file to use instead of the project file. Must exist.
        **kwargs: Per-section overrides, e.g. ``build={"jobs": 8}``.

    Raises:
        ConfigError: CONFIG_FILE_NOT_FOUND for a missing ``config_file``,
            CONFIG_PARSE_ERROR for unreadable YAML, CONFIG_INVALID_VALUE
            naming the first field that fails validation.
    """
    if config_file is not None:
        if not config_file.is_file():
            raise ConfigError.file_not_found(str(config_file))
        project_file = config_file
    else:
        project_file = (project_root or Path.cwd()) / CONFIG_DIR_NAME / "config.yaml"

    sections = _deep_merge(_load_yaml(GLOBAL_CONFIG_PATH), _load_yaml(project_file))
    try:
        settings = _make_settings_class(sections)(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        dotted = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(dotted, first.get("input"), first["msg"]) from e
    return AsmGraphConfig.model_validate(settings.model_dump())


def resolve_project_path(project_root: Path, value: str | Path) -> Path:
    """Resolve a configured path against the project root unless already absolute."""
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return project_root / path
