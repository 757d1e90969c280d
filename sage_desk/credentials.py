from __future__ import annotations

from dataclasses import dataclass

from sage_desk.storage import KeyValueStore

TOKEN_KEY = "apiKey"
ACCOUNT_KEY = "username"


@dataclass(frozen=True)
class Credentials:
    token: str = ""
    account: str = ""  # account email, informational only

    def __repr__(self) -> str:
        return f"Credentials(token={'***' if self.token else ''!r}, account={self.account!r})"


class ConfigStore:
    """Reads and writes the user's credentials. Values are stored as given."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self) -> Credentials:
        return Credentials(
            token=str(self.store.get(TOKEN_KEY) or ""),
            account=str(self.store.get(ACCOUNT_KEY) or ""),
        )

    def set(self, credentials: Credentials) -> None:
        self.store.set(TOKEN_KEY, credentials.token)
        self.store.set(ACCOUNT_KEY, credentials.account)
