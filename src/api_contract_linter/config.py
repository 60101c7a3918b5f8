"""Configuration loading for the linter.

Settings come from an optional YAML file; command line options override
them. Relative paths in the file are resolved against the file's directory.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from api_contract_linter.parser.requests import DEFAULT_CALL_NAME, DEFAULT_SERIALIZER
from api_contract_linter.parser.sources import DEFAULT_EXCLUDE, DEFAULT_EXTENSIONS

DEFAULT_CONFIG_FILE = "api-contract-lint.yaml"


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class LintConfig(BaseModel):
    requests: Path | None = None  # directory of files issuing HTTP calls
    types: Path | None = None  # directory of type declarations
    collection: Path | None = None  # Postman collection JSON
    call_name: str = DEFAULT_CALL_NAME
    serializer: str = DEFAULT_SERIALIZER
    extensions: list[str] = list(DEFAULT_EXTENSIONS)
    exclude: list[str] = list(DEFAULT_EXCLUDE)


def load_config(path: Path) -> LintConfig:
    """Load and validate a YAML config file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config {path} is not valid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")

    try:
        config = LintConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e

    updates = {}
    for key in ("requests", "types", "collection"):
        value = getattr(config, key)
        if value is not None and not value.is_absolute():
            updates[key] = path.parent / value
    return config.model_copy(update=updates)


def find_config(cwd: Path | None = None) -> LintConfig:
    """Load the default config file from ``cwd`` if present, else defaults."""
    candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_FILE
    if candidate.is_file():
        return load_config(candidate)
    return LintConfig()
