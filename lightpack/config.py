"""
YAML configuration for Lightpack sessions.

Example config.yaml:

    lightpack:
      host: 192.168.1.20
      port: 3636
      api_key: secret
      print_traffic: false
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .api import Lightpack
from .io import ClientConst


@dataclass
class LightpackConfig:
    host: str = ClientConst.DEFAULT_HOST
    port: int = ClientConst.DEFAULT_PORT
    api_key: Optional[str] = None
    print_traffic: bool = False

    def __post_init__(self):
        self.port = int(self.port)
        if not 0 < self.port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, received {self.port}")
        if self.api_key is not None:
            self.api_key = str(self.api_key)

    def session(self, logger: Optional[logging.Logger] = None) -> Lightpack:
        return Lightpack(host=self.host, port=self.port, api_key=self.api_key, logger=logger, print_traffic=self.print_traffic)


def load_config(path: str | Path, section: str = "lightpack") -> LightpackConfig:
    """Read a LightpackConfig from the given section of a YAML file."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    values = data.get(section) or {}
    if not isinstance(values, dict):
        raise ValueError(f"'{section}' in {path} must be a mapping")
    known = {f.name for f in fields(LightpackConfig)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {', '.join(sorted(unknown))}")
    return LightpackConfig(**values)
