import pytest

from watchlog.errors import InvalidIdentifier
from watchlog.manager import WatchlogManager
from watchlog.store import TableStore, connect_database
from watchlog.tvmaze import Show


def make_show(series_id, episodes=3, ended=None):
    info = {
        "id": series_id,
        "name": "Show %d" % series_id,
        "status": "Ended" if ended else "Running",
        "premiered": "2001-10-16",
        "ended": ended,
        "externals": {"imdb": "tt%07d" % series_id},
    }
    episode_list = [{
        "id": series_id * 1000 + n,
        "season": 1,
        "number": n,
        "name": "Episode %d" % n,
        "airdate": "2001-10-%02d" % (15 + n),
        "runtime": 60,
    } for n in range(1, episodes + 1)]
    return Show(info, episode_list)


class FakeCatalog(object):
    """Stands in for TVMazeClient, knows series 1 to 30."""

    def __init__(self):
        self.shows = dict((n, make_show(n)) for n in range(1, 31))
        self.shows[99] = make_show(99, episodes=2, ended="2011-05-13")
        self.fetched = []

    def _show(self, show_id):
        key = str(show_id).strip()
        if not (key.isascii() and key.isdigit()) or int(key) not in self.shows:
            raise InvalidIdentifier("'%s' is not a valid TVMaze id" % show_id)
        return self.shows[int(key)]

    def fetch_show(self, show_id):
        self.fetched.append(show_id)
        return self._show(show_id)

    def fetch_show_by_imdb(self, imdb_id):
        for show in self.shows.values():
            if show.imdb_id == imdb_id:
                self.fetched.append(imdb_id)
                return show
        raise InvalidIdentifier("'%s' is not a valid IMDb id" % imdb_id)

    def validate_show_id(self, show_id):
        try:
            self._show(show_id)
        except InvalidIdentifier:
            return False
        return True

    def close(self):
        pass


@pytest.fixture
def store():
    store = TableStore(connect_database(None, memory=True))
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def manager(store, catalog):
    manager = WatchlogManager(store, catalog)
    manager.ensure_schema()
    return manager
