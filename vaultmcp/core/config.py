"""
VaultMCP Configuration
----------------------
Runtime settings for the tool-dispatch server and the stdio bridge.
Loads from environment variables and optional YAML files.

Settings are immutable snapshots. Components that depend on a setting
subscribe to a SettingsChannel and receive every new snapshot together with
the names of the fields that changed.
"""

import os
import logging
from pathlib import Path
from typing import Callable, Dict, Any, List, Optional, Set

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("VaultMCP.Config")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 28734
DEFAULT_TEMPLATES_DIR = "Templates"
LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")

DEFAULT_SYSTEM_PROMPT = """You are an AI assistant with access to a Markdown knowledge vault through MCP tools. Here are some guidelines for interacting with this vault:

## Style & Behavior:
- Be helpful, concise, and respectful of the user's knowledge management workflow
- When creating or modifying notes, follow consistent markdown formatting
- Use appropriate heading levels, bullet points, and formatting for readability
- Respect existing note structures and naming conventions when possible

## Working with Notes:
- Always check if files exist before creating new ones to avoid duplicates
- When creating daily/periodic notes, use the structured templates provided
- For search operations, try multiple approaches if initial searches don't yield results
- When appending content, consider the existing structure and add appropriate spacing

## Best Practices:
- Suggest meaningful file names and organize content logically
- Use tags and links to maintain vault connectivity
- When uncertain about user preferences, ask for clarification
- Prioritize accuracy and useful organization over speed"""


def _parse_port(raw: Optional[str], default: int, name: str) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if not 0 <= value <= 65535:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected a TCP port. Using %d.",
            name,
            raw,
            default,
        )
        return default


class VaultSettings(BaseModel):
    """Settings shared by the HTTP server, the dispatcher and the host adapter."""
    model_config = ConfigDict(frozen=True)

    vault_path: str = Field(default_factory=os.getcwd)
    api_key: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    http_server_enabled: bool = True
    templates_dir: str = DEFAULT_TEMPLATES_DIR
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    log_level: str = "info"

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 <= value <= 65535:
            raise ValueError(f"port out of range: {value}")
        return value

    @field_validator("host")
    @classmethod
    def _check_loopback(cls, value: str) -> str:
        if value not in LOOPBACK_HOSTS:
            raise ValueError(
                f"host must be a loopback address ({', '.join(LOOPBACK_HOSTS)}), got {value!r}"
            )
        return value

    @classmethod
    def from_env(cls) -> "VaultSettings":
        """
        Load settings from environment variables.

        - VAULTMCP_VAULT_PATH: Root directory of the vault
        - VAULTMCP_API_KEY: Bearer token required by the HTTP server
        - VAULTMCP_HOST / VAULTMCP_PORT: Server binding (loopback only)
        - VAULTMCP_HTTP_ENABLED: Start the HTTP server with the service
        - VAULTMCP_TEMPLATES_DIR: Vault-relative templates folder
        - VAULTMCP_SYSTEM_PROMPT_FILE: File holding a custom system prompt
        - VAULTMCP_LOG_LEVEL: Logging level name
        """
        system_prompt = DEFAULT_SYSTEM_PROMPT
        prompt_file = os.environ.get("VAULTMCP_SYSTEM_PROMPT_FILE")
        if prompt_file:
            try:
                system_prompt = Path(prompt_file).read_text(encoding="utf-8")
            except OSError as exc:
                logger.warning("Cannot read system prompt file %s: %s", prompt_file, exc)

        return cls(
            vault_path=os.environ.get("VAULTMCP_VAULT_PATH", os.getcwd()),
            api_key=os.environ.get("VAULTMCP_API_KEY", ""),
            host=os.environ.get("VAULTMCP_HOST", DEFAULT_HOST),
            port=_parse_port(os.environ.get("VAULTMCP_PORT"), DEFAULT_PORT, "VAULTMCP_PORT"),
            http_server_enabled=os.environ.get("VAULTMCP_HTTP_ENABLED", "true").lower()
            not in {"0", "false", "no", "off"},
            templates_dir=os.environ.get("VAULTMCP_TEMPLATES_DIR", DEFAULT_TEMPLATES_DIR),
            system_prompt=system_prompt,
            log_level=os.environ.get("VAULTMCP_LOG_LEVEL", "info"),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "VaultSettings":
        """Load settings from a YAML file, layered over the environment."""
        base = cls.from_env()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Config file not found: %s; using environment/defaults", path)
            return base
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.model_validate({**base.model_dump(), **data})

    def save_yaml(self, path: str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(), f, sort_keys=True, allow_unicode=True)
        logger.info("Settings saved to %s", target)

    def redacted(self) -> Dict[str, Any]:
        """Settings safe to print or log: no key, and the prompt only by size."""
        data = self.model_dump()
        data["api_key"] = "set" if self.api_key else "unset"
        data["system_prompt"] = f"<{len(self.system_prompt)} chars>"
        return data


SettingsListener = Callable[[VaultSettings, Set[str]], None]


class SettingsChannel:
    """
    Publishes settings snapshots to subscribed components.

    update() validates the new snapshot before publishing; listeners are
    called in subscription order with the new settings and the changed keys.
    """

    def __init__(self, settings: Optional[VaultSettings] = None):
        self._settings = settings or VaultSettings()
        self._listeners: List[SettingsListener] = []

    @property
    def current(self) -> VaultSettings:
        return self._settings

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(self, **changes: Any) -> VaultSettings:
        previous = self._settings
        candidate = VaultSettings.model_validate({**previous.model_dump(), **changes})
        changed = {
            key for key in changes
            if getattr(previous, key) != getattr(candidate, key)
        }
        if not changed:
            return previous
        self._settings = candidate
        logger.info("Settings updated: %s", ", ".join(sorted(changed)))
        for listener in list(self._listeners):
            listener(candidate, changed)
        return candidate


class BridgeConfig(BaseModel):
    """Environment configuration of the stdio bridge process."""
    model_config = ConfigDict(frozen=True)

    api_key: str
    vault_path: str
    server_host: str = "localhost"
    server_port: int = DEFAULT_PORT

    @property
    def base_url(self) -> str:
        return f"http://{self.server_host}:{self.server_port}"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "BridgeConfig":
        """
        Read bridge settings; raises ValueError naming the first missing
        required variable (VAULTMCP_API_KEY, VAULTMCP_VAULT_PATH).
        """
        env = os.environ if environ is None else environ
        api_key = env.get("VAULTMCP_API_KEY", "")
        if not api_key:
            raise ValueError("VAULTMCP_API_KEY environment variable is required")
        vault_path = env.get("VAULTMCP_VAULT_PATH", "")
        if not vault_path:
            raise ValueError("VAULTMCP_VAULT_PATH environment variable is required")
        return cls(
            api_key=api_key,
            vault_path=vault_path,
            server_host=env.get("VAULTMCP_SERVER_HOST", "localhost") or "localhost",
            server_port=_parse_port(env.get("VAULTMCP_SERVER_PORT"), DEFAULT_PORT, "VAULTMCP_SERVER_PORT"),
        )
