import os
from typing import Optional

from pydantic import ValidationError

from vpn_bypass_agent.constants import CONFIG_DIR
from vpn_bypass_agent.lib.configuration.config_file import ConfigFile
from vpn_bypass_agent.lib.configuration.schemas import AgentConfig

AGENT_CONFIG_DIR = CONFIG_DIR


class AgentConfigFile(ConfigFile):
    def __init__(self, config_file: Optional[str] = None):
        super().__init__(
            config_file or os.path.join(AGENT_CONFIG_DIR, "config.toml"),
            defaults=AgentConfig().model_dump(),
        )

    def load_or_create_defaults(self, allow_empty: bool = False):  # type: ignore[override]
        super().load_or_create_defaults(allow_empty=allow_empty)
        # Validate and normalize with schema; fall back to defaults on error
        try:
            cfg = AgentConfig(**self.data)
            self.data = cfg.model_dump()
        except ValidationError as e:
            self.logger.warning(f"Config in {self.config_file} is invalid, using defaults: {e}")
            self.create_defaults()
            try:
                self.save()
            except OSError as e:
                # The user-level monitors usually cannot write under /etc
                self.logger.warning(f"Unable to rewrite {self.config_file}: {e}")

    @property
    def config(self) -> AgentConfig:
        return AgentConfig(**self.data)


def load_agent_config(config_file: Optional[str] = None) -> AgentConfig:
    config_file_obj = AgentConfigFile(config_file)
    config_file_obj.load_or_create_defaults()
    return config_file_obj.config
