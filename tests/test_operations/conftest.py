"""
Shared fixtures for the operation tests.
"""
from typing import Any, Dict
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs

import pytest

from exchanges.indodax import IndodaxCredentials


class FakeExchange:
    """Drives a patched requests.post and decodes what was sent to it."""

    def __init__(self, mock_post: MagicMock):
        self.mock_post = mock_post

    def respond(self, body: Any, status_code: int = 200) -> None:
        """Answer the next call with a success envelope around ``body``."""
        self.reply({"success": 1, "return": body}, status_code)

    def fail(self, error: str) -> None:
        """Answer the next call with success=0 and ``error``."""
        self.reply({"success": 0, "error": error})

    def reply(self, envelope: Any, status_code: int = 200) -> None:
        response = MagicMock()
        response.json.return_value = envelope
        response.status_code = status_code
        response.ok = status_code < 400
        self.mock_post.return_value = response

    @property
    def sent(self) -> Dict[str, str]:
        """Form fields of the last request."""
        body = self.mock_post.call_args[1]["data"]
        return {key: values[0] for key, values in parse_qs(body).items()}


@pytest.fixture
def credentials() -> IndodaxCredentials:
    """Create test credentials."""
    return IndodaxCredentials(api_key="TEST-KEY", secret_key="test-secret")


@pytest.fixture
def exchange() -> Any:
    """Mock requests.post behind a FakeExchange."""
    with patch('requests.post') as mock_post:
        yield FakeExchange(mock_post)
