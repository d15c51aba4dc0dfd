from pathlib import Path
from unittest.mock import MagicMock, patch

import portalocker
import pytest

import server
from vaultmcp.core.config import VaultSettings
from vaultmcp.store.vault import VaultStore


@pytest.fixture(autouse=True)
def _reset_server_lock_state():
    server._SERVER_INSTANCE_LOCK_HANDLE = None
    server._SERVER_INSTANCE_LOCK_PATH = None
    yield
    server._SERVER_INSTANCE_LOCK_HANDLE = None
    server._SERVER_INSTANCE_LOCK_PATH = None


def test_acquire_server_instance_lock_success(tmp_path: Path):
    settings = VaultSettings(vault_path=str(tmp_path))
    lock_handle = MagicMock()

    with patch("server.portalocker.Lock", return_value=lock_handle) as lock_ctor:
        server._acquire_server_instance_lock(settings)

    expected_path = tmp_path / ".vaultmcp_server.lock"
    lock_ctor.assert_called_once()
    assert lock_ctor.call_args.args[0] == str(expected_path)
    lock_handle.acquire.assert_called_once()
    assert server._SERVER_INSTANCE_LOCK_HANDLE is lock_handle
    assert server._SERVER_INSTANCE_LOCK_PATH == expected_path


def test_acquire_server_instance_lock_raises_on_contention(tmp_path: Path):
    settings = VaultSettings(vault_path=str(tmp_path))
    lock_handle = MagicMock()
    lock_handle.acquire.side_effect = portalocker.exceptions.LockException("locked")

    with patch("server.portalocker.Lock", return_value=lock_handle):
        with pytest.raises(RuntimeError, match="already held"):
            server._acquire_server_instance_lock(settings)

    assert server._SERVER_INSTANCE_LOCK_HANDLE is None
    assert server._SERVER_INSTANCE_LOCK_PATH is None


def test_release_server_instance_lock_is_idempotent():
    lock_handle = MagicMock()
    server._SERVER_INSTANCE_LOCK_HANDLE = lock_handle
    server._SERVER_INSTANCE_LOCK_PATH = Path("dummy.lock")

    server._release_server_instance_lock()
    server._release_server_instance_lock()

    lock_handle.release.assert_called_once()
    assert server._SERVER_INSTANCE_LOCK_HANDLE is None
    assert server._SERVER_INSTANCE_LOCK_PATH is None


def test_vault_lease_file_is_hidden_from_the_store(vault_root: Path):
    store = VaultStore(vault_root)
    before = sorted(node.path for node in store.list_all())
    markdown_before = sorted(node.path for node in store.list_markdown_files())

    server._acquire_server_instance_lock(VaultSettings(vault_path=str(vault_root)))
    try:
        assert (vault_root / server.SERVER_LOCK_NAME).exists()
        paths = sorted(node.path for node in store.list_all())
        assert paths == before
        assert server.SERVER_LOCK_NAME not in paths
        assert sorted(node.path for node in store.list_markdown_files()) == markdown_before
    finally:
        server._release_server_instance_lock()
