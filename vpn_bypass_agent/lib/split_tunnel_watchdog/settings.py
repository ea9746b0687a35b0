import json
from typing import Any

MONITORED_DEFAULTS = {
    "splitTunnelEnabled": False,
    "splitTunnelRules": [],
    "killswitch": "",
    "bypassSubnets": [],
}


def extract_monitored_fields(settings: dict) -> dict:
    """Keep only the split tunnel fields, filling in the client's defaults."""
    return {key: settings.get(key, default) for key, default in MONITORED_DEFAULTS.items()}


def normalize(obj: Any) -> Any:
    """Canonical form for comparison: sorted keys, and lists sorted by their JSON text."""
    if isinstance(obj, dict):
        return {k: normalize(v) for k, v in sorted(obj.items())}
    if isinstance(obj, list):
        items = [normalize(item) for item in obj]
        return sorted(items, key=lambda x: json.dumps(x, sort_keys=True))
    return obj


def configs_match(current: dict, reference: dict) -> bool:
    return normalize(current) == normalize(reference)


def dumps(settings: dict) -> str:
    return json.dumps(settings, sort_keys=True, indent=2)
