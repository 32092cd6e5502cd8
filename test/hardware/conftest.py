import os

import pytest

from pitaya.types import ConnectionConfig


@pytest.fixture(scope="session")
def instrument_config():
    """Connection to a real instrument, from PITAYA_HOST / PITAYA_APP."""
    host = os.environ.get("PITAYA_HOST")
    if not host:
        pytest.skip("PITAYA_HOST not set, no instrument available")
    return ConnectionConfig(host=host, uuid=os.environ.get("PITAYA_APP", ""))
