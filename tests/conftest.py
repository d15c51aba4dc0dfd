import os

import pytest

from vaultmcp.store.vault import VaultStore


@pytest.fixture(autouse=True)
def _clean_vaultmcp_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("VAULTMCP_"):
            monkeypatch.delenv(key, raising=False)


def write_note(root, rel_path: str, content: str):
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def vault_root(tmp_path):
    root = tmp_path / "vault"
    root.mkdir()
    write_note(root, "alpha.md", "Alpha note about python and testing.\n")
    write_note(root, "projects/beta.md", "---\ntags: [work, python]\nstatus: active\n---\nBeta mentions Python twice: python.\n")
    write_note(root, "projects/gamma.md", "Gamma has nothing relevant. #idea\n")
    write_note(root, "Templates/meeting.md", "# Meeting\n\n- Attendees:\n")
    write_note(root, "Templates/sub/daily.md", "# {{date}}\n")
    write_note(root, "attachments/image.png", "not really a png")
    write_note(root, ".obsidian/config.json", "{}")
    return root


@pytest.fixture
def store(vault_root):
    return VaultStore(vault_root)


@pytest.fixture
def make_note(vault_root):
    def _make(rel_path: str, content: str):
        return write_note(vault_root, rel_path, content)
    return _make
