"""Pytest configuration and fixtures for gateway tests.

This module provides shared fixtures for testing the gateway, including
sample Smart Home directives, settings factories and fake backend
responses.
"""

from __future__ import annotations

import socket
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from typing import Optional
from uuid import uuid4

import pytest

# Add backend source to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))


BASE_URL = 'https://backend.example'


# --- Settings Fixtures ---


def make_settings(**kwargs: Any):
    """Create Settings with test defaults."""
    from alexa_gateway.config import Settings

    defaults: dict[str, Any] = {
        'base_url': BASE_URL,
        'long_lived_access_token': None,
        'verify_ssl': True,
        'allow_fallback_token': False,
        'log_level': 'INFO',
    }
    defaults.update(kwargs)
    return Settings(**defaults)


@pytest.fixture
def settings():
    """Default gateway settings."""
    return make_settings()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Ensure each test loads settings from its own environment."""
    from alexa_gateway.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


# --- Directive Fixtures ---


def make_event(
    scope: Optional[dict[str, Any]] = None,
    scope_path: tuple[str, str] = ('endpoint', 'scope'),
    payload_version: Any = '3',
) -> dict[str, Any]:
    """Build a Smart Home directive event with a scope at ``scope_path``."""
    directive: dict[str, Any] = {
        'header': {
            'namespace': 'Alexa.PowerController',
            'name': 'TurnOn',
            'payloadVersion': payload_version,
            'messageId': str(uuid4()),
        },
        'endpoint': {'endpointId': 'light.kitchen'},
        'payload': {},
    }
    if scope is not None:
        parent, key = scope_path
        directive[parent][key] = scope
    return {'directive': directive}


@pytest.fixture
def device_event() -> dict[str, Any]:
    """Device directive with the scope on the endpoint."""
    return make_event({'type': 'BearerToken', 'token': 'abc'})


@pytest.fixture
def accept_grant_event() -> dict[str, Any]:
    """Account linking directive with the scope in payload.grantee."""
    return {
        'directive': {
            'header': {
                'namespace': 'Alexa.Authorization',
                'name': 'AcceptGrant',
                'payloadVersion': '3',
                'messageId': str(uuid4()),
            },
            'payload': {
                'grant': {'type': 'OAuth2.AuthorizationCode', 'code': 'grant-code'},
                'grantee': {'type': 'BearerToken', 'token': 'grantee-token'},
            },
        }
    }


@pytest.fixture
def lambda_context():
    """Minimal Lambda context object."""
    return SimpleNamespace(aws_request_id=str(uuid4()))


# --- Mock Fixtures ---


def make_response(status_code: int, body: str | bytes):
    """Create a real ``requests.Response`` with the given status and body."""
    import requests

    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode('utf-8') if isinstance(body, str) else body
    response.encoding = 'utf-8'
    response.url = f'{BASE_URL}/api/alexa/smart_home'
    return response


@pytest.fixture
def mock_dns(mocker):
    """Resolve every host name to a documentation address."""
    return mocker.patch(
        'socket.getaddrinfo',
        return_value=[
            (socket.AF_INET, socket.SOCK_STREAM, 6, '', ('203.0.113.10', 443)),
        ],
    )


@pytest.fixture
def mock_post(mocker):
    """Patch ``requests.Session.post``; set ``return_value`` per test."""
    import requests

    return mocker.patch.object(
        requests.Session,
        'post',
        return_value=make_response(200, '{}'),
    )
