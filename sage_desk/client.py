import logging
from dataclasses import dataclass
from typing import Any

import requests

from sage_desk.config import AppConfig
from sage_desk.credentials import Credentials
from sage_desk.errors import (
    EmptyResponseError,
    NetworkError,
    ParseError,
    UnexpectedFormatError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-access-tokens"


@dataclass(frozen=True)
class PromptRequest:
    model: str
    message: str
    dataset: str | None = "none"

    def validate(self) -> None:
        """Whitespace-only prompts count as empty, a stricter check than a plain length test."""
        if not self.message.strip():
            raise ValidationError("Prompt cannot be empty.")
        if not self.model:
            raise ValidationError("Please select a model.")

    def to_payload(self) -> dict[str, str]:
        payload = {"model": self.model, "message": self.message}
        if self.dataset is not None:
            payload["dataset"] = self.dataset
        return payload


class SageClient:
    """
    Thin wrapper around the AskSage HTTP endpoints.
    Both calls block; run them off the UI thread.
    """

    def __init__(self, config: AppConfig | None = None, session: requests.Session | None = None):
        self.config = config or AppConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def list_models(self, credentials: Credentials) -> list[str]:
        """Return the model identifiers in server order."""
        headers = {}
        if self.config.authenticate_model_list and credentials.token:
            headers[TOKEN_HEADER] = credentials.token

        data, raw = self._request("GET", "/get-models", headers=headers)
        models = data.get("response") if isinstance(data, dict) else None
        if not isinstance(models, list) or not all(isinstance(m, str) for m in models):
            raise UnexpectedFormatError(
                "Failed to parse models. Unexpected response format", raw=raw
            )
        logger.info(f"Fetched {len(models)} models")
        return models

    def submit_prompt(self, credentials: Credentials, model: str, message: str) -> str:
        """Send a prompt and return the completion text."""
        prompt = PromptRequest(model=model, message=message, dataset=self.config.dataset)
        prompt.validate()

        data, raw = self._request(
            "POST",
            "/query",
            headers={TOKEN_HEADER: credentials.token},
            json=prompt.to_payload(),
        )
        if (
            isinstance(data, dict)
            and data.get("response") == "OK"
            and isinstance(data.get("message"), str)
        ):
            return data["message"]
        raise UnexpectedFormatError("Unexpected response format", raw=raw)

    def _request(self, method: str, path: str, **kwargs: Any) -> tuple[Any, str]:
        """Perform a call and return (decoded JSON, raw body)."""
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            resp = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning(f"{method} {url} failed: {exc}")
            raise NetworkError(f"Error: {exc}") from exc
        except UnicodeError as exc:
            # http.client encodes header values as latin-1
            logger.warning(f"{method} {url} could not encode request headers")
            raise ValidationError(
                "The API key contains characters that cannot be sent. Check it in Settings."
            ) from exc
        except ValueError as exc:
            logger.warning(f"{method} {url} rejected before sending: {exc}")
            raise NetworkError(f"Error: {exc}") from exc

        if not resp.ok:
            # The body still decides the outcome; the status is only reported.
            logger.warning(f"{method} {url} returned HTTP {resp.status_code}")

        body = resp.text
        if not body or not body.strip():
            raise EmptyResponseError()
        try:
            return resp.json(), body
        except ValueError as exc:
            raise ParseError(f"JSON Parsing Error: {exc}") from exc
