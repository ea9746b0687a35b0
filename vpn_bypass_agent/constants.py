import os

RUNTIME_ENV = os.environ.get("RUNTIME_ENV", "production")
IS_DEV = RUNTIME_ENV == "development"

CONFIG_DIR = "/etc/vpn-bypass-agent"
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.toml")

# Privileged loop logs go to the system log dir, user-level loops to the user's state dir.
SYSTEM_LOG_DIR = "/var/log"
USER_LOG_DIR = os.path.expanduser("~/.local/state")

MAX_LOG_SIZE = 5 * 1024 * 1024

PRIVATE_NETWORKS = ["10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16", "127.0.0.0/8"]
