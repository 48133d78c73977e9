from __future__ import annotations

import os
from typing import Any

import yaml

from cf_config_client.errors import ParseError

ENV_TAG = "!env"


class EnvSafeLoader(yaml.SafeLoader):
    """SafeLoader that resolves `!env NAME` scalars to the current value of environment variable NAME."""


def _construct_env(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    name = loader.construct_scalar(node)
    return os.environ.get(str(name).strip())


EnvSafeLoader.add_constructor(ENV_TAG, _construct_env)


def parse_yaml(text: str, *, source: str, with_env: bool = False) -> Any:
    loader = EnvSafeLoader if with_env else yaml.SafeLoader
    try:
        return yaml.load(text, Loader=loader)
    except yaml.YAMLError as exc:
        raise ParseError(f"Malformed YAML. source={source} error={exc}") from exc
