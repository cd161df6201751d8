import httpx
import pytest

from voxscribe.errors import NetworkError
from voxscribe.models import HttpxFetcher


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_fetch_streams_body_in_chunks():
    body = b"0123456789" * 5
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=body)

    fetcher = HttpxFetcher(client=_client(handler), chunk_size=8)
    with fetcher.fetch("https://models.test/ggml-tiny.bin") as chunks:
        received = list(chunks)

    assert b"".join(received) == body
    assert all(len(chunk) <= 8 for chunk in received)
    assert seen == ["https://models.test/ggml-tiny.bin"]


def test_fetch_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(302, headers={"Location": "https://models.test/new"})
        return httpx.Response(200, content=b"moved")

    fetcher = HttpxFetcher(client=_client(handler))
    with fetcher.fetch("https://models.test/old") as chunks:
        assert b"".join(chunks) == b"moved"


def test_fetch_maps_http_status_to_network_error():
    fetcher = HttpxFetcher(client=_client(lambda request: httpx.Response(404)))

    with pytest.raises(NetworkError, match="404"):
        with fetcher.fetch("https://models.test/missing.bin"):
            pass


def test_fetch_maps_transport_failure_to_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = HttpxFetcher(client=_client(handler))

    with pytest.raises(NetworkError) as excinfo:
        with fetcher.fetch("https://models.test/ggml-base.bin"):
            pass

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
