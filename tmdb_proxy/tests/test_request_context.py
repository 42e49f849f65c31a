import uuid

from tmdb_proxy.core.request_context import (
    clear_request_id,
    generate_request_id,
    get_request_id,
    set_request_id,
)


def test_generate_request_id_sets_context():
    try:
        request_id = generate_request_id()
        assert uuid.UUID(request_id)
        assert get_request_id() == request_id
    finally:
        clear_request_id()


def test_set_and_clear_request_id():
    assert set_request_id("edge-req-1") == "edge-req-1"
    assert get_request_id() == "edge-req-1"

    clear_request_id()

    assert get_request_id() is None
