"""
Tests for vaultmcp/core/config.py: settings loading, the settings update
channel and the bridge environment.
"""

import pytest
from pydantic import ValidationError

from vaultmcp.core.config import (
    DEFAULT_PORT,
    DEFAULT_SYSTEM_PROMPT,
    BridgeConfig,
    SettingsChannel,
    VaultSettings,
)


def test_from_env_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = VaultSettings.from_env()
    assert settings.vault_path == str(tmp_path)
    assert settings.api_key == ""
    assert settings.host == "127.0.0.1"
    assert settings.port == DEFAULT_PORT == 28734
    assert settings.http_server_enabled is True
    assert settings.templates_dir == "Templates"
    assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT


def test_from_env_reads_variables(tmp_path, monkeypatch):
    prompt_file = tmp_path / "prompt.md"
    prompt_file.write_text("Be brief.", encoding="utf-8")
    monkeypatch.setenv("VAULTMCP_VAULT_PATH", str(tmp_path))
    monkeypatch.setenv("VAULTMCP_API_KEY", "secret")
    monkeypatch.setenv("VAULTMCP_HOST", "localhost")
    monkeypatch.setenv("VAULTMCP_PORT", "28800")
    monkeypatch.setenv("VAULTMCP_HTTP_ENABLED", "off")
    monkeypatch.setenv("VAULTMCP_TEMPLATES_DIR", "Meta/Templates")
    monkeypatch.setenv("VAULTMCP_SYSTEM_PROMPT_FILE", str(prompt_file))

    settings = VaultSettings.from_env()

    assert settings.api_key == "secret"
    assert settings.host == "localhost"
    assert settings.port == 28800
    assert settings.http_server_enabled is False
    assert settings.templates_dir == "Meta/Templates"
    assert settings.system_prompt == "Be brief."


def test_invalid_port_env_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("VAULTMCP_PORT", "not-a-port")
    assert VaultSettings.from_env().port == DEFAULT_PORT


def test_non_loopback_host_rejected():
    with pytest.raises(ValidationError, match="loopback"):
        VaultSettings(host="0.0.0.0")


def test_from_yaml_layers_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv("VAULTMCP_API_KEY", "from-env")
    config = tmp_path / "vaultmcp.yaml"
    config.write_text("port: 29000\ntemplates_dir: Tpl\n", encoding="utf-8")

    settings = VaultSettings.from_yaml(str(config))

    assert settings.api_key == "from-env"
    assert settings.port == 29000
    assert settings.templates_dir == "Tpl"


def test_from_yaml_missing_file_uses_env(tmp_path, monkeypatch):
    monkeypatch.setenv("VAULTMCP_API_KEY", "from-env")
    settings = VaultSettings.from_yaml(str(tmp_path / "missing.yaml"))
    assert settings.api_key == "from-env"


def test_from_yaml_rejects_non_mapping(tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        VaultSettings.from_yaml(str(config))


def test_save_yaml_then_load(tmp_path):
    config = tmp_path / "nested" / "vaultmcp.yaml"
    original = VaultSettings(vault_path=str(tmp_path), api_key="k1", port=28999)
    original.save_yaml(str(config))

    loaded = VaultSettings.from_yaml(str(config))
    assert loaded.api_key == "k1"
    assert loaded.port == 28999


def test_redacted_hides_api_key():
    assert VaultSettings(api_key="secret").redacted()["api_key"] == "set"
    assert VaultSettings().redacted()["api_key"] == "unset"
    assert VaultSettings(system_prompt="abcd").redacted()["system_prompt"] == "<4 chars>"


class TestSettingsChannel:
    def test_update_notifies_changed_keys(self):
        channel = SettingsChannel(VaultSettings(api_key="a"))
        seen = []
        channel.subscribe(lambda settings, changed: seen.append((settings, changed)))

        updated = channel.update(api_key="b", port=DEFAULT_PORT)

        assert channel.current is updated
        assert updated.api_key == "b"
        assert len(seen) == 1
        assert seen[0][1] == {"api_key"}

    def test_noop_update_does_not_notify(self):
        channel = SettingsChannel(VaultSettings(api_key="a"))
        seen = []
        channel.subscribe(lambda settings, changed: seen.append(changed))
        channel.update(api_key="a")
        assert seen == []

    def test_unsubscribe(self):
        channel = SettingsChannel()
        seen = []
        unsubscribe = channel.subscribe(lambda settings, changed: seen.append(changed))
        unsubscribe()
        unsubscribe()
        channel.update(templates_dir="Other")
        assert seen == []

    def test_invalid_update_keeps_previous_snapshot(self):
        channel = SettingsChannel(VaultSettings(port=28734))
        with pytest.raises(ValidationError):
            channel.update(port=70000)
        assert channel.current.port == 28734


class TestBridgeConfig:
    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="VAULTMCP_API_KEY environment variable is required"):
            BridgeConfig.from_env({"VAULTMCP_VAULT_PATH": "/vault"})

    def test_requires_vault_path(self):
        with pytest.raises(ValueError, match="VAULTMCP_VAULT_PATH environment variable is required"):
            BridgeConfig.from_env({"VAULTMCP_API_KEY": "k"})

    def test_defaults(self):
        config = BridgeConfig.from_env({"VAULTMCP_API_KEY": "k", "VAULTMCP_VAULT_PATH": "/vault"})
        assert config.server_host == "localhost"
        assert config.server_port == 28734
        assert config.base_url == "http://localhost:28734"

    def test_overrides(self):
        config = BridgeConfig.from_env({
            "VAULTMCP_API_KEY": "k",
            "VAULTMCP_VAULT_PATH": "/vault",
            "VAULTMCP_SERVER_HOST": "127.0.0.1",
            "VAULTMCP_SERVER_PORT": "30000",
        })
        assert config.base_url == "http://127.0.0.1:30000"
