import copy
import json
import logging
import os
import tempfile
from os import PathLike
from typing import Any, Optional, Union

import toml

DECODE_ERRORS = (toml.decoder.TomlDecodeError, json.decoder.JSONDecodeError)


class ConfigFile:
    """
    A dict-of-sections config persisted as TOML, or JSON for any other suffix.

    Saves go through a temp file in the same directory and ``os.replace``, so a
    monitor reading the file while the operator rewrites it never sees half a
    document.
    """

    def __init__(self, config_file: Union[str, PathLike] = "config.toml", defaults: Optional[dict[str, Any]] = None):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {config_file}")

        self.config_file = str(config_file)
        self.defaults: dict[str, Any] = defaults or {}
        self.data: dict[str, Any] = {}

    @property
    def is_toml(self) -> bool:
        return self.config_file.endswith(".toml")

    def load(self):
        """:raises FileNotFoundError: or one of ``DECODE_ERRORS``"""
        with open(self.config_file, "r") as f:
            self.data = toml.load(f) if self.is_toml else json.load(f)
        self.logger.debug(f"Loaded config from {self.config_file}")

    def save(self):
        directory = os.path.dirname(os.path.abspath(self.config_file))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{os.path.basename(self.config_file)}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                if self.is_toml:
                    toml.dump(self.data, f)
                else:
                    json.dump(self.data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.config_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        self.logger.debug(f"Saved config to {self.config_file}")

    def create_defaults(self):
        self.data = copy.deepcopy(self.defaults)

    def load_or_create_defaults(self, allow_empty: bool = False):
        try:
            self.load()
        except FileNotFoundError:
            self.logger.info(f"No config at {self.config_file}, using defaults")
            self.create_defaults()
            return
        except DECODE_ERRORS as e:
            self.logger.warning(f"Unable to decode {self.config_file}, using defaults: {e}")
            self.create_defaults()
            return

        if not self.data and not allow_empty:
            self.logger.warning(f"{self.config_file} is empty, using defaults")
            self.create_defaults()
