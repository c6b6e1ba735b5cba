"""
Client configuration loaded from YAML.
"""
import os
import yaml
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

CONFIG_ENV_VAR = "P2P_CHAT_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "protocols" / "p2p_chat" / "chat.yaml"


@dataclass
class ChatConfig:
    """Settings for one chat session."""
    db_path: str = ":memory:"
    local_sender_label: str = "You"
    status_clear_ms: int = 3000
    peer_connected_status: str = "Peer connected"
    retract_failed_channels: bool = True
    subscribe_timeout_ms: int = 0
    load_channels_on_init: bool = True
    verbose: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatConfig":
        """Build a config from a mapping, checking value types."""
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}

        for key, value in data.items():
            if key not in known:
                print(f"[config] Ignoring unknown key: {key}")
                continue
            expected = type(getattr(cls, key))
            # bool is a subclass of int; keep them apart
            if expected is int and isinstance(value, bool):
                raise ValueError(f"Config key {key} must be int, got bool")
            if not isinstance(value, expected):
                raise ValueError(
                    f"Config key {key} must be {expected.__name__}, got {type(value).__name__}"
                )
            kwargs[key] = value

        config = cls(**kwargs)
        if config.status_clear_ms < 0:
            raise ValueError("status_clear_ms must not be negative")
        if config.subscribe_timeout_ms < 0:
            raise ValueError("subscribe_timeout_ms must not be negative")
        return config


def load_config(path: Optional[Union[str, Path]] = None) -> ChatConfig:
    """
    Load the session config.

    Resolution order: explicit path, then $P2P_CHAT_CONFIG, then the
    bundled chat.yaml. A missing bundled file yields the defaults; a
    missing explicit file is an error.
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return ChatConfig()

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    return ChatConfig.from_dict(data)
