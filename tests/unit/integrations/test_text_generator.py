from __future__ import annotations

from dataclasses import replace

import pytest
import requests

from oppflow.core.config import get_config
from oppflow.core.exceptions import UpstreamUnavailableError
from oppflow.integrations.text_generator import TextGenerator


class _Response:
    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code}")

    def json(self):
        return self._body


class _Session:
    def __init__(self, response):
        self.response = response
        self.payloads = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.payloads.append(json)
        return self.response


def test_missing_api_key_is_upstream_unavailable():
    generator = TextGenerator(replace(get_config(), TEXT_GENERATOR_API_KEY=None), session=_Session(None))
    with pytest.raises(UpstreamUnavailableError):
        generator.generate("hello")


def test_generate_returns_first_choice():
    session = _Session(_Response({"choices": [{"message": {"content": "# Proposal"}}]}))
    generator = TextGenerator(replace(get_config(), TEXT_GENERATOR_API_KEY="k"), session=session)

    assert generator.generate("write it") == "# Proposal"
    assert session.payloads[0]["messages"][-1] == {"role": "user", "content": "write it"}


@pytest.mark.parametrize("response", [_Response({}, status_code=502), _Response({"choices": []})])
def test_bad_responses_are_upstream_unavailable(response):
    generator = TextGenerator(replace(get_config(), TEXT_GENERATOR_API_KEY="k"), session=_Session(response))
    with pytest.raises(UpstreamUnavailableError):
        generator.generate("write it")
