import types

import pytest

ROUTE_10_RECORD = {
    "route_id": "10",
    "route_name": "10",
    "advisory_message": "<h3>Route 10</h3><p>Delayed due to weather.</p>",
}


def fake_response(payload=None, status_error=None, json_error=None):
    """Stand-in for a ``requests.Response``."""

    def raise_for_status():
        if status_error:
            raise status_error

    def json():
        if json_error:
            raise json_error
        return payload

    return types.SimpleNamespace(raise_for_status=raise_for_status, json=json)


@pytest.fixture
def route_10_record():
    return dict(ROUTE_10_RECORD)
