import pytest

from refdata import _state
from refdata.listeners import consume_pending_listeners
from refdata.loaders import StaticLoader


@pytest.fixture(autouse=True)
def _isolate_process_state():
    _state.reset_refresh_latch()
    _state.reset_current_service()
    consume_pending_listeners()
    yield
    _state.reset_refresh_latch()
    _state.reset_current_service()
    consume_pending_listeners()


@pytest.fixture
def item_rows():
    return [
        {"id": 1, "lvl": 3, "kind": "sword"},
        {"id": 2, "lvl": 3, "kind": "shield"},
        {"id": 3, "lvl": 5, "kind": "sword"},
    ]


@pytest.fixture
def static_loader():
    return StaticLoader()
