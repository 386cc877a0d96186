"""
Shared pytest fixtures for the pmvault test suite.

Every vault lives under the test's tmp_path, so tests never touch
~/.pmvault and sessions never share state.
"""

import pytest

from pmvault.manager import PasswordManager

MASTER = "Correct-Horse1!"


@pytest.fixture
def vault_path(tmp_path):
    return tmp_path / "vault.pmvault"


@pytest.fixture
def pm(vault_path):
    """A fresh session with no vault on disk."""
    return PasswordManager(str(vault_path))


@pytest.fixture
def unlocked_pm(pm):
    """A session with a newly set up, empty vault."""
    pm.setup_master_password(MASTER)
    return pm
