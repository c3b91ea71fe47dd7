from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Mapping, Optional

import yaml

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

# Deployment settings read from the environment, overriding the config file.
ENVIRONMENT_KEYS = {
    "base_path": "BASE_PATH",
    "location": "LOCATION",
    "github_token": "GITHUB_TOKEN",
}


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def apply_environment(config: dict, environ: Optional[Mapping[str, str]] = None) -> dict:
    environ = os.environ if environ is None else environ
    merged = dict(config)
    for key, variable in ENVIRONMENT_KEYS.items():
        value = environ.get(variable)
        if value is not None:
            merged[key] = value
    return merged
