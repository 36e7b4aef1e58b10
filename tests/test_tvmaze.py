import httpx
import pytest

from watchlog.errors import FetchError, InvalidIdentifier
from watchlog.tvmaze import Show, TVMazeClient

SMALLVILLE = {
    "id": 435,
    "name": "Smallville",
    "status": "Ended",
    "premiered": "2001-10-16",
    "ended": "2011-05-13",
    "externals": {"tvrage": 4980, "thetvdb": 72218, "imdb": "tt0279600"},
}

SMALLVILLE_EPISODES = [
    {"id": 46012, "season": 1, "number": 1, "name": "Pilot", "airdate": "2001-10-16", "runtime": 60},
    {"id": 46013, "season": 1, "number": 2, "name": "Metamorphosis", "airdate": "2001-10-23", "runtime": 60},
    {"id": 46014, "season": 1, "number": 3, "name": "Hothead", "airdate": "2001-10-30", "runtime": 60},
    {"id": 1151730, "season": 1, "number": None, "name": "Behind the Scenes", "airdate": None, "runtime": None},
]


class FakeTVMaze(object):
    def __init__(self):
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path == "/shows/435":
            return httpx.Response(200, json=SMALLVILLE)
        if path == "/shows/435/episodes":
            return httpx.Response(200, json=SMALLVILLE_EPISODES)
        if path == "/lookup/shows" and request.url.params.get("imdb") == "tt0279600":
            return httpx.Response(301, headers={"location": "https://api.tvmaze.com/shows/435"})
        return httpx.Response(404, json={"name": "Not Found", "status": 404})


@pytest.fixture
def tvmaze():
    server = FakeTVMaze()
    client = TVMazeClient(client=httpx.Client(transport=httpx.MockTransport(server)))
    client.server = server
    yield client
    client.close()


def test_fetch_show(tvmaze):
    show = tvmaze.fetch_show("435")
    assert show.series_id == 435
    assert show.imdb_id == "tt0279600"
    assert show.name == "Smallville"
    assert show.status == "Ended"
    assert show.premiere_date == "2001-10-16"
    assert show.ended_date == "2011-05-13"
    assert show.num_episodes == 4
    assert show.episode(3).name == "Hothead"
    assert show.episode(1).episode_id == 46012
    assert show.episode(4).episode_num is None


def test_episode_out_of_range(tvmaze):
    show = tvmaze.fetch_show(435)
    with pytest.raises(IndexError):
        show.episode(0)
    with pytest.raises(IndexError):
        show.episode(5)


def test_episodes_include_specials(tvmaze):
    tvmaze.fetch_show(435)
    episodes = tvmaze.server.requests[-1]
    assert episodes.url.path == "/shows/435/episodes"
    assert episodes.url.params["specials"] == "1"


def test_missing_dates_are_empty():
    show = Show({"id": 1, "name": "Running", "premiered": None, "ended": None}, [])
    assert show.premiere_date == ""
    assert show.ended_date == ""
    assert show.imdb_id == ""
    assert show.episodes == ()


def test_unknown_show(tvmaze):
    with pytest.raises(InvalidIdentifier):
        tvmaze.fetch_show("1")


def test_malformed_show_ids_are_not_requested(tvmaze):
    for show_id in ("", "  ", "abc", "-5", "4.5", "\u00b2", "\u0664\u0663\u0665"):
        with pytest.raises(InvalidIdentifier):
            tvmaze.fetch_show(show_id)
    assert tvmaze.server.requests == []


def test_fetch_show_by_imdb(tvmaze):
    show = tvmaze.fetch_show_by_imdb("tt0279600")
    assert show.series_id == 435
    assert show.episode(2).name == "Metamorphosis"


def test_lookup_show_id(tvmaze):
    assert tvmaze.lookup_show_id("tt0279600") == 435
    with pytest.raises(InvalidIdentifier):
        tvmaze.lookup_show_id("tt0000000")
    with pytest.raises(InvalidIdentifier):
        tvmaze.lookup_show_id("")


def test_validate_show_id(tvmaze):
    assert tvmaze.validate_show_id("435")
    assert tvmaze.validate_show_id(435)
    assert not tvmaze.validate_show_id("1")
    assert not tvmaze.validate_show_id("abc")


def test_rate_limit_is_an_error():
    def handler(request):
        return httpx.Response(429)

    tvmaze = TVMazeClient(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(FetchError):
        tvmaze.fetch_show("435")
