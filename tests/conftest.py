"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
from unittest.mock import Mock

from odata_node.core.session import ODataConfig


BASE_URL = "https://services.odata.org/TripPinRESTierService/"


@pytest.fixture
def config():
    """Run configuration without authentication."""
    return ODataConfig(base_url=BASE_URL)


@pytest.fixture
def mock_session(config):
    """Create a mock ODataSession whose send() returns a single entity."""
    session = Mock()
    session.cfg = config
    session.base = BASE_URL
    session.send = Mock(return_value={"UserName": "scottketchum", "FirstName": "Scott"})
    return session


@pytest.fixture
def sample_collection_response():
    """Sample OData v4 collection response."""
    return {
        "@odata.context": BASE_URL + "$metadata#People",
        "value": [
            {"UserName": "russellwhyte", "FirstName": "Russell"},
            {"UserName": "scottketchum", "FirstName": "Scott"},
        ],
    }


@pytest.fixture
def sample_v2_response():
    """Sample OData v2 response."""
    return {
        "d": {
            "results": [
                {"ID": "001", "Name": "Test 1"},
                {"ID": "002", "Name": "Test 2"},
            ],
            "__next": None,
        }
    }


def make_response(status=200, body=None, reason="OK", text=None):
    """Build a mock requests.Response."""
    r = Mock()
    r.status_code = status
    r.reason = reason
    r.headers = {"Content-Type": "application/json"}
    if text is None:
        text = "" if body is None else json.dumps(body)
    r.text = text
    r.content = text.encode("utf-8")
    if body is None:
        r.json = Mock(side_effect=ValueError("No JSON object could be decoded"))
    else:
        r.json = Mock(return_value=body)
    return r


@pytest.fixture
def response_factory():
    return make_response
