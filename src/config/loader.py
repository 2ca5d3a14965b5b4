import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.config.models import AppConfig

INVITE_SALT_ENV = "TEAMSIGNUP_INVITE_SALT"


def load_config(path: Path) -> AppConfig:
    """
    Load and validate the settings file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at: {path}")

    with open(path) as f:
        content = f.read()

    # Settings may live inside a ```yaml fenced block of a markdown doc
    lines = content.splitlines()
    yaml_lines = []
    in_block = False
    found_block = False

    for line in lines:
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break

        if in_block:
            yaml_lines.append(line)

    clean_content = "\n".join(yaml_lines) if found_block else content

    try:
        data = yaml.safe_load(clean_content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in settings file: {e}") from e

    # The signing secret is normally injected by the environment, not committed
    salt = os.environ.get(INVITE_SALT_ENV)
    if salt and isinstance(data, dict) and isinstance(data.get("signup"), dict):
        data["signup"]["invite_salt"] = salt

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Settings validation failed:\n{e}") from e
