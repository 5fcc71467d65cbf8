# =============================================================================
# accounts.py - Account Source Loading
# =============================================================================
# This module loads the ordered list of accounts to run. The usual source is
# a JSON file holding an array of {"username": ..., "password": ...} objects.
# When that file does not exist, a single account can be given through the
# USERNAME / PASSWORD environment variables instead.
#
# Entries that are not objects or lack a username/password are kept (so they
# still produce a result) but flagged invalid.
#
# Main functions:
# - load_accounts(): Reads accounts from file or env, applies LIMIT
# - sanitize_tag(): Makes a username safe for file names and result records
# =============================================================================

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from .validation import ConfigurationError


@dataclass(frozen=True)
class Account:
    username: str
    password: str
    index: int = 0

    @property
    def is_valid(self) -> bool:
        return bool(self.username) and bool(self.password)

    @property
    def tag(self) -> str:
        if not self.username:
            return f"account-{self.index + 1}"
        return sanitize_tag(self.username)


def sanitize_tag(username: str) -> str:
    """
    >>> sanitize_tag("alice@example.com")
    'alice_example.com'
    >>> sanitize_tag("  Bob Smith ")
    'Bob_Smith'
    """
    return re.sub(r'[^A-Za-z0-9._-]+', '_', username.strip())


def _as_account(entry, index: int) -> Account:
    if not isinstance(entry, dict):
        return Account(username='', password='', index=index)
    username = str(entry.get('username') or '').strip()
    password = str(entry.get('password') or '')
    return Account(username=username, password=password, index=index)


def apply_limit(accounts: List[Account], limit: int) -> List[Account]:
    if limit and limit > 0:
        return accounts[:limit]
    return accounts


def load_accounts(path: str, limit: int = 0, env: Optional[Mapping[str, str]] = None) -> List[Account]:
    filepath = Path(path)
    env = env or {}

    if not filepath.exists():
        username = (env.get('USERNAME') or '').strip()
        password = env.get('PASSWORD') or ''
        if username and password:
            return [Account(username=username, password=password)]
        raise ConfigurationError(f"Accounts file not found: {path}")

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Accounts file {path} could not be read: {e}")

    if not isinstance(data, list):
        raise ConfigurationError(f"Accounts file {path} must contain a JSON array")
    if not data:
        raise ConfigurationError(f"Accounts file {path} is empty")

    accounts = [_as_account(entry, i) for i, entry in enumerate(data)]
    return apply_limit(accounts, limit)
