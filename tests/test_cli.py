import json
from pathlib import Path

import yaml

import vaultmcp.cli as cli


def _write_yaml(path: Path, payload: dict) -> Path:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_generate_key_only(capsys):
    rc = cli.main(["generate-key", "--key-only"])
    assert rc == 0
    key = capsys.readouterr().out.strip()
    assert len(key) >= 40
    assert key.split() == [key]


def test_generate_key_saves_to_config(tmp_path, capsys):
    cfg_path = _write_yaml(tmp_path / "vaultmcp.yaml", {"vault_path": str(tmp_path), "port": 29001})

    rc = cli.main(["generate-key", "--config", str(cfg_path), "--key-only"])
    assert rc == 0
    key = capsys.readouterr().out.strip()

    saved = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    assert saved["api_key"] == key
    assert saved["port"] == 29001
    assert saved["vault_path"] == str(tmp_path)


def test_client_config_prints_json(tmp_path, capsys):
    cfg_path = _write_yaml(tmp_path / "vaultmcp.yaml", {"vault_path": str(tmp_path), "api_key": "abc"})
    rc = cli.main(["client-config", "--config", str(cfg_path)])
    assert rc == 0
    config = json.loads(capsys.readouterr().out)
    env = config["mcpServers"]["vault"]["env"]
    assert env["VAULTMCP_API_KEY"] == "abc"
    assert env["VAULTMCP_VAULT_PATH"] == str(tmp_path)
    assert env["VAULTMCP_SERVER_PORT"] == "28734"


def test_doctor_fails_when_server_unreachable(tmp_path, monkeypatch, capsys):
    cfg_path = _write_yaml(tmp_path / "vaultmcp.yaml", {"vault_path": str(tmp_path), "api_key": "abc"})
    monkeypatch.setattr(cli, "_check_server_health", lambda url, token, timeout: (False, "connection refused"))

    rc = cli.main(["doctor", "--config", str(cfg_path)])
    assert rc == 1
    out = capsys.readouterr().out
    assert "Health/auth check: FAIL (connection refused)" in out
    assert "API key: ***" in out


def test_doctor_passes_with_healthy_server(tmp_path, monkeypatch, capsys):
    cfg_path = _write_yaml(tmp_path / "vaultmcp.yaml", {"vault_path": str(tmp_path), "api_key": "abcdefghijkl"})
    seen = {}

    def _healthy(url, token, timeout):
        seen.update(url=url, token=token, timeout=timeout)
        return True, "ok"

    monkeypatch.setattr(cli, "_check_server_health", _healthy)
    rc = cli.main(["doctor", "--config", str(cfg_path), "--timeout-seconds", "1.5"])
    assert rc == 0
    assert seen == {"url": "http://127.0.0.1:28734", "token": "abcdefghijkl", "timeout": 1.5}
    assert "Critical issues" not in capsys.readouterr().out


def test_doctor_flags_missing_key_and_vault(tmp_path, monkeypatch, capsys):
    cfg_path = _write_yaml(tmp_path / "vaultmcp.yaml", {"vault_path": str(tmp_path / "missing")})
    monkeypatch.setattr(cli, "_check_server_health", lambda url, token, timeout: (False, "http_401"))
    assert cli.main(["doctor", "--config", str(cfg_path)]) == 1
    out = capsys.readouterr().out
    assert "Vault path is not a directory" in out
    assert "No API key configured" in out


def test_doctor_show_settings_redacts_key(tmp_path, monkeypatch, capsys):
    cfg_path = _write_yaml(tmp_path / "vaultmcp.yaml", {"vault_path": str(tmp_path), "api_key": "very-secret-key"})
    monkeypatch.setattr(cli, "_check_server_health", lambda url, token, timeout: (True, "ok"))

    assert cli.main(["doctor", "--config", str(cfg_path), "--show-settings"]) == 0
    out = capsys.readouterr().out
    assert "Effective settings:" in out
    assert '"api_key": "set"' in out
    assert "very-secret-key" not in out
