from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_response
from sage_desk.client import PromptRequest, SageClient
from sage_desk.config import AppConfig
from sage_desk.credentials import Credentials
from sage_desk.errors import (
    EmptyResponseError,
    NetworkError,
    ParseError,
    UnexpectedFormatError,
    ValidationError,
)

CREDS = Credentials(token="secret-token", account="me@example.com")


def make_client(body: bytes = b"", status: int = 200, config: AppConfig | None = None):
    session = MagicMock()
    session.headers = {}
    session.request.return_value = make_response(body, status)
    return SageClient(config or AppConfig(), session=session), session


def test_list_models_returns_server_order():
    client, session = make_client(b'{"response": ["m1", "m2"]}')

    assert client.list_models(CREDS) == ["m1", "m2"]

    method, url = session.request.call_args.args
    assert method == "GET"
    assert url == "https://api.asksage.ai/server/get-models"
    assert session.headers["Content-Type"] == "application/json"


def test_list_models_does_not_send_token_by_default():
    client, session = make_client(b'{"response": []}')
    client.list_models(CREDS)
    assert "x-access-tokens" not in session.request.call_args.kwargs["headers"]


def test_list_models_sends_token_when_configured():
    config = AppConfig(authenticate_model_list=True)
    client, session = make_client(b'{"response": []}', config=config)
    client.list_models(CREDS)
    assert session.request.call_args.kwargs["headers"]["x-access-tokens"] == "secret-token"


@pytest.mark.parametrize("body", [b'{"foo": 1}', b'["m1"]', b'{"response": "m1"}', b'{"response": ["a", 2]}'])
def test_list_models_wrong_shape(body):
    client, _ = make_client(body)
    with pytest.raises(UnexpectedFormatError) as excinfo:
        client.list_models(CREDS)
    assert excinfo.value.raw == body.decode()


def test_list_models_non_json_body():
    client, _ = make_client(b"<html>bad gateway</html>", status=502)
    with pytest.raises(ParseError):
        client.list_models(CREDS)


def test_list_models_empty_body():
    client, _ = make_client(b"")
    with pytest.raises(EmptyResponseError):
        client.list_models(CREDS)


def test_transport_failure_is_network_error():
    client, session = make_client()
    session.request.side_effect = requests.ConnectionError("no route to host")
    with pytest.raises(NetworkError):
        client.list_models(CREDS)

    session.request.side_effect = requests.Timeout("timed out")
    with pytest.raises(NetworkError):
        client.submit_prompt(CREDS, "gpt-4o-mini", "hello")


def test_submit_prompt_success():
    client, session = make_client(b'{"response": "OK", "message": "hi"}')

    assert client.submit_prompt(CREDS, "gpt-4o-mini", "hello") == "hi"

    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "POST"
    assert url == "https://api.asksage.ai/server/query"
    assert kwargs["headers"] == {"x-access-tokens": "secret-token"}
    assert kwargs["json"] == {"model": "gpt-4o-mini", "message": "hello", "dataset": "none"}
    assert kwargs["timeout"] == 60.0


def test_submit_prompt_without_dataset():
    client, session = make_client(b'{"response": "OK", "message": "hi"}', config=AppConfig(dataset=None))
    client.submit_prompt(CREDS, "m", "hello")
    assert session.request.call_args.kwargs["json"] == {"model": "m", "message": "hello"}


@pytest.mark.parametrize(
    "body",
    [b'{"response": "ERROR"}', b'{"response": "OK"}', b'{"response": "OK", "message": 3}', b"[]"],
)
def test_submit_prompt_unexpected_format(body):
    client, _ = make_client(body)
    with pytest.raises(UnexpectedFormatError) as excinfo:
        client.submit_prompt(CREDS, "m", "hello")
    assert body.decode() in str(excinfo.value)


def test_submit_prompt_non_json():
    client, _ = make_client(b"not json")
    with pytest.raises(ParseError):
        client.submit_prompt(CREDS, "m", "hello")


@pytest.mark.parametrize("model,message", [("m", ""), ("m", "   "), ("", "hello")])
def test_submit_prompt_validates_before_network(model, message):
    client, session = make_client(b'{"response": "OK", "message": "hi"}')
    with pytest.raises(ValidationError):
        client.submit_prompt(CREDS, model, message)
    session.request.assert_not_called()


def test_empty_prompt_message_checked_first():
    with pytest.raises(ValidationError, match="Prompt cannot be empty"):
        PromptRequest(model="", message="").validate()


def test_base_url_trailing_slash():
    client, session = make_client(b'{"response": []}', config=AppConfig(base_url="http://localhost:9000/server/"))
    client.list_models(CREDS)
    assert session.request.call_args.args[1] == "http://localhost:9000/server/get-models"


def test_unencodable_token_is_validation_error():
    client, session = make_client()
    session.request.side_effect = UnicodeEncodeError("latin-1", "tok’", 3, 4, "ordinal not in range(256)")
    with pytest.raises(ValidationError, match="API key"):
        client.submit_prompt(Credentials(token="tok’"), "m", "hello")


def test_whitespace_prompt_is_rejected():
    with pytest.raises(ValidationError, match="Prompt cannot be empty"):
        PromptRequest(model="m", message=" \n\t").validate()
