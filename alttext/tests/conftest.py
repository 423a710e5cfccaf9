import json

import pytest
import requests

from alttext.gateway.config import Settings
from alttext.gateway.server import create_app


@pytest.fixture
def settings():
    return Settings(
        provider="openai",
        openai_api_key="sk-test",
        anthropic_api_key="sk-ant-test",
        request_timeout=5.0,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_response(mocker):
    """
    Build a fake requests.Response carrying a JSON body.
    """
    def _make(body, status_code=200):
        response = mocker.Mock(spec=requests.Response)
        response.status_code = status_code
        response.text = json.dumps(body)
        response.json.return_value = body
        return response

    return _make


@pytest.fixture
def mock_post(mocker):
    """
    Patch the outbound provider call so no test touches the network.
    """
    return mocker.patch("alttext.ai_service.providers.requests.post")
