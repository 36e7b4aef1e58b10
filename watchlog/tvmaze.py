# Watchlog is a tool for keeping a log of watched tv-series.
# Copyright (C) 2021 The Watchlog authors

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.

# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Show metadata from the TVMaze API (https://www.tvmaze.com/api)."""

import logging
from collections import namedtuple

from watchlog.connector import Connector
from watchlog.errors import FetchError, InvalidIdentifier

logger = logging.getLogger(__name__)

BASE_URL = "https://api.tvmaze.com"

Episode = namedtuple("Episode", "episode_id season_num episode_num name airdate runtime")


def _text(value):
    return "" if value is None else str(value)


class Show(object):
    """Everything TVMaze knows about one series, as fetched at one point in time."""

    def __init__(self, info, episodes):
        self._info = dict(info)
        self._episodes = tuple(Episode(
                episode_id=int(e["id"]),
                season_num=e.get("season"),
                episode_num=e.get("number"),
                name=e.get("name"),
                airdate=e.get("airdate"),
                runtime=e.get("runtime"),
            ) for e in episodes)

    def __repr__(self):
        return "<Show %s %r>" % (self.series_id, self.name)

    @property
    def series_id(self):
        return int(self._info["id"])

    @property
    def imdb_id(self):
        return _text((self._info.get("externals") or {}).get("imdb"))

    @property
    def name(self):
        return _text(self._info.get("name"))

    @property
    def status(self):
        return _text(self._info.get("status"))

    @property
    def premiere_date(self):
        return _text(self._info.get("premiered"))

    @property
    def ended_date(self):
        return _text(self._info.get("ended"))

    @property
    def episodes(self):
        return self._episodes

    @property
    def num_episodes(self):
        return len(self._episodes)

    def episode(self, overall_num):
        """Episode by its 1-based position across all seasons."""
        if not 1 <= overall_num <= len(self._episodes):
            raise IndexError("No episode number %d in %r" % (overall_num, self))
        return self._episodes[overall_num - 1]


class TVMazeClient(object):
    def __init__(self, base_url=BASE_URL, client=None):
        self.connector = Connector(base_url, client)

    def close(self):
        self.connector.close()

    def _show_info(self, show_id):
        show_id = _text(show_id).strip()
        if not show_id:
            raise InvalidIdentifier("No TVMaze id given")
        if not (show_id.isascii() and show_id.isdigit()):
            raise InvalidIdentifier("'%s' is not a valid TVMaze id" % show_id)
        response = self.connector.get("/shows/%s" % show_id)
        if response.status_code == 404:
            raise InvalidIdentifier("'%s' is not a valid TVMaze id" % show_id)
        return response.json()

    def _imdb_info(self, imdb_id):
        imdb_id = _text(imdb_id).strip()
        if not imdb_id:
            raise InvalidIdentifier("No IMDb id given")
        response = self.connector.get("/lookup/shows", params={"imdb": imdb_id})
        if response.status_code != 200:
            raise InvalidIdentifier("'%s' is not a valid IMDb id" % imdb_id)
        return response.json()

    def _episodes(self, series_id):
        response = self.connector.get("/shows/%s/episodes" % series_id, params={"specials": 1})
        if response.status_code != 200:
            raise FetchError("Episode info not found for series '%s'" % series_id)
        return response.json()

    def fetch_show(self, show_id):
        logger.info("Fetching show %s", show_id)
        info = self._show_info(show_id)
        return Show(info, self._episodes(info["id"]))

    def fetch_show_by_imdb(self, imdb_id):
        logger.info("Fetching show by IMDb id %s", imdb_id)
        info = self._imdb_info(imdb_id)
        return Show(info, self._episodes(info["id"]))

    def lookup_show_id(self, imdb_id):
        return int(self._imdb_info(imdb_id)["id"])

    def validate_show_id(self, show_id):
        try:
            self._show_info(show_id)
        except InvalidIdentifier:
            return False
        return True
