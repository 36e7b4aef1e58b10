import httpx
import pytest

from watchlog.connector import MAX_REDIRECTS, Connector, redirect_url
from watchlog.errors import FetchError


def connector(handler):
    return Connector("https://api.example.com/", httpx.Client(transport=httpx.MockTransport(handler), max_redirects=MAX_REDIRECTS))


def test_get_ok():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"id": 435})

    response = connector(handler).get("/shows/435", params={"embed": "cast"})
    assert response.status_code == 200
    assert response.json() == {"id": 435}
    assert seen == ["https://api.example.com/shows/435?embed=cast"]


def test_not_found_is_returned():
    response = connector(lambda request: httpx.Response(404)).get("/shows/0")
    assert response.status_code == 404


def test_follows_redirect():
    def handler(request):
        if request.url.path == "/lookup/shows":
            return httpx.Response(301, headers={"location": "/shows/435"})
        return httpx.Response(200, json={"id": 435})

    response = connector(handler).get("/lookup/shows", params={"imdb": "tt0279600"})
    assert response.status_code == 200
    assert str(response.url) == "https://api.example.com/shows/435"


def test_redirect_not_followed_on_request():
    def handler(request):
        return httpx.Response(301, headers={"location": "https://api.example.com/shows/435"})

    response = connector(handler).get("/lookup/shows", follow_redirects=False)
    assert response.status_code == 301
    assert redirect_url(response) == "https://api.example.com/shows/435"


def test_too_many_redirects():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(301, headers={"location": "/loop"})

    with pytest.raises(FetchError):
        connector(handler).get("/loop")
    assert len(requests) == 4


def test_unexpected_status():
    with pytest.raises(FetchError):
        connector(lambda request: httpx.Response(429)).get("/shows/1")
    with pytest.raises(FetchError):
        connector(lambda request: httpx.Response(500)).get("/shows/1")


def test_redirect_url_needs_redirect():
    response = connector(lambda request: httpx.Response(200, json={})).get("/shows/1")
    with pytest.raises(ValueError):
        redirect_url(response)


def test_redirect_without_location():
    with pytest.raises(FetchError):
        connector(lambda request: httpx.Response(301)).get("/lookup/shows")

    response = connector(lambda request: httpx.Response(301)).get("/lookup/shows", follow_redirects=False)
    with pytest.raises(FetchError):
        redirect_url(response)


def test_default_client_limits_redirects():
    default = Connector("https://api.example.com")
    assert default.client.max_redirects == MAX_REDIRECTS
    default.close()
