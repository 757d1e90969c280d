"""Locally persisted model list with a 24 hour refresh window."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from sage_desk.client import SageClient
from sage_desk.config import REFRESH_INTERVAL_MS, AppConfig
from sage_desk.credentials import Credentials
from sage_desk.storage import KeyValueStore

logger = logging.getLogger(__name__)

MODELS_KEY = "storedModels"
LAST_UPDATE_KEY = "lastModelUpdate"
PREFERRED_MODEL = "gpt-4o-mini"


def now_ms() -> int:
    return int(time.time() * 1000)


def should_refresh(now: int, last_fetched_at: int | None,
                   interval_ms: int = REFRESH_INTERVAL_MS) -> bool:
    """True when nothing was fetched yet or the last fetch is older than the interval."""
    if last_fetched_at is None:
        return True
    return now - last_fetched_at > interval_ms


def default_model(model_ids: Sequence[str], preferred: str = PREFERRED_MODEL) -> str:
    if preferred in model_ids:
        return preferred
    return model_ids[0] if model_ids else ""


@dataclass(frozen=True)
class ModelList:
    model_ids: tuple[str, ...] = ()
    fetched_at: int | None = None  # epoch ms; None when nothing is cached

    @property
    def missing(self) -> bool:
        return self.fetched_at is None


class ModelCache:
    def __init__(
        self,
        client: SageClient,
        store: KeyValueStore,
        config: AppConfig | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.client = client
        self.store = store
        self.config = config or AppConfig()
        self.clock = clock

    def _last_fetched_at(self) -> int | None:
        value = self.store.get(LAST_UPDATE_KEY)
        # bool is an int subclass; reject it along with anything non-numeric
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value)

    def load(self) -> ModelList:
        """Return the persisted list without touching the network."""
        stored = self.store.get(MODELS_KEY)
        if not isinstance(stored, list):
            logger.info("No locally stored models available.")
            return ModelList()
        return ModelList(
            model_ids=tuple(str(m) for m in stored),
            fetched_at=self._last_fetched_at(),
        )

    def refresh(self, credentials: Credentials) -> ModelList:
        """
        Fetch from the server and persist the result.

        Client errors propagate unchanged and nothing is written, so the
        previous list and timestamp stay as they were.
        """
        models = self.client.list_models(credentials)

        fetched_at = self.clock()
        previous = self._last_fetched_at()
        if previous is not None and previous > fetched_at:
            # never move the timestamp backwards, e.g. after a clock change
            fetched_at = previous

        self.store.set(MODELS_KEY, list(models))
        self.store.set(LAST_UPDATE_KEY, fetched_at)
        return ModelList(model_ids=tuple(models), fetched_at=fetched_at)

    def get_models(self, credentials: Credentials) -> ModelList:
        if should_refresh(self.clock(), self._last_fetched_at(), self.config.refresh_interval_ms):
            logger.info("Fetching models from server...")
            return self.refresh(credentials)
        logger.info("Loading models from local storage...")
        return self.load()

    def default_model(self, models: ModelList) -> str:
        return default_model(models.model_ids, self.config.preferred_model)
