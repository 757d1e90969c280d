"""State and flows behind the main window, kept free of any widget code."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from sage_desk.client import PromptRequest, SageClient
from sage_desk.credentials import ConfigStore, Credentials
from sage_desk.dispatch import BackgroundRunner, Failure, Generation, Result, Success
from sage_desk.errors import ParseError, UnexpectedFormatError, ValidationError
from sage_desk.model_cache import ModelCache, ModelList

logger = logging.getLogger(__name__)

NO_MODELS_MESSAGE = "No locally stored models available."


@dataclass(frozen=True)
class ViewState:
    models: tuple[str, ...] = ()
    selected_model: str = ""
    response_text: str = ""
    error_message: str | None = None
    sending: bool = False
    loading_models: bool = False
    show_settings: bool = False
    credentials: Credentials = field(default_factory=Credentials)


class SageController:
    def __init__(
        self,
        config_store: ConfigStore,
        cache: ModelCache,
        client: SageClient,
        runner: BackgroundRunner,
        on_change: Callable[[ViewState], None] = lambda state: None,
    ) -> None:
        self.config_store = config_store
        self.cache = cache
        self.client = client
        self.runner = runner
        self.on_change = on_change
        self.state = ViewState(credentials=config_store.get())
        self._model_requests = Generation()

    def _update(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        self.on_change(self.state)

    # ------------------------------------------------------------------
    def start(self) -> None:
        if not self.state.credentials.token:
            self._update(show_settings=True)
        else:
            self.fetch_models()

    def open_settings(self) -> None:
        self._update(show_settings=True)

    def close_settings(self) -> None:
        self._update(show_settings=False)

    def save_settings(self, token: str, account: str) -> None:
        credentials = Credentials(token=token, account=account)
        self.config_store.set(credentials)
        self._update(credentials=credentials, show_settings=False)
        self.fetch_models()

    def select_model(self, model: str) -> None:
        self._update(selected_model=model)

    # ----------  Models  ----------
    def fetch_models(self) -> None:
        ticket = self._model_requests.next()
        credentials = self.state.credentials
        self._update(loading_models=True)
        self.runner.run(
            lambda: self.cache.get_models(credentials),
            on_done=lambda result: self._models_done(ticket, result),
        )

    def _models_done(self, ticket: int, result: Result) -> None:
        if not self._model_requests.is_current(ticket):
            logger.debug(f"Dropping superseded model list (ticket {ticket})")
            return

        if isinstance(result, Success):
            self._show_models(result.value, error=None)
        else:
            # keep whatever is cached; the refresh itself wrote nothing
            logger.warning(f"Model refresh failed: {result.error}")
            self._show_models(self.cache.load(), error=str(result.error))

    def _show_models(self, models: ModelList, error: str | None) -> None:
        if models.missing and error is None:
            error = NO_MODELS_MESSAGE
        self._update(
            models=models.model_ids,
            selected_model=self.cache.default_model(models),
            error_message=error,
            loading_models=False,
        )

    # ----------  Prompt  ----------
    def submit(self, message: str) -> bool:
        """Start a submission. Returns False when nothing was sent."""
        if self.state.sending:
            logger.debug("Submit ignored, a prompt is already in flight")
            return False

        model = self.state.selected_model
        try:
            PromptRequest(model=model, message=message).validate()
        except ValidationError as exc:
            self._update(error_message=str(exc))
            return False

        credentials = self.state.credentials
        self._update(sending=True)
        self.runner.run(
            lambda: self.client.submit_prompt(credentials, model, message),
            on_done=self._prompt_done,
        )
        return True

    def _prompt_done(self, result: Result) -> None:
        if isinstance(result, Success):
            self._update(sending=False, response_text=result.value, error_message=None)
            return

        assert isinstance(result, Failure)
        error = result.error
        response_text = self.state.response_text
        if isinstance(error, UnexpectedFormatError):
            response_text = "Error: Unable to retrieve completion."
        elif isinstance(error, ParseError):
            response_text = "Failed to parse server response."
        self._update(sending=False, response_text=response_text, error_message=str(error))
