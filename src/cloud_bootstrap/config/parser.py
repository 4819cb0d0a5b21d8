"""YAML configuration loader for cloud-bootstrap."""

from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from .models import BootstrapConfig

DEFAULT_CONFIG_FILE = "aws-resources.yaml"


class ConfigValidationError(Exception):
    """The resource file could not be read, parsed or validated.

    ``errors`` holds one ``{"loc": [...], "msg": ...}`` entry per schema
    violation and is empty for read and syntax failures.
    """

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def __str__(self) -> str:
        details = [
            f"  • {'.'.join(str(part) for part in entry.get('loc', []))}: {entry.get('msg', 'invalid value')}"
            for entry in self.errors
        ]
        return "\n".join([self.message, *details]) if details else self.message


def parse_config(text: str) -> BootstrapConfig:
    """Parse and validate a configuration document.

    Args:
        text: YAML document text

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If the YAML is malformed or fails validation
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"error parsing YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            "error parsing YAML: top-level document must be a mapping"
        )

    try:
        return BootstrapConfig.model_validate(data)
    except ValidationError as e:
        errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
        raise ConfigValidationError(
            f"Configuration validation failed with {len(errors)} error(s)", errors
        ) from e


def load_config(config_path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> BootstrapConfig:
    """Load the resource configuration from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If the file cannot be read, parsed or validated
    """
    path = Path(config_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigValidationError(f"error reading config file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigValidationError(f"error parsing YAML: {path} is not valid UTF-8: {e}") from e

    return parse_config(text)
