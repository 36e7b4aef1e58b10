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

"""Bookkeeping of tracked series and the times they were watched.

A series may have any number of series_watchlog rows but at most one of them
is open (finished = 0) at any time. Every method that creates or closes a row
keeps it that way.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from watchlog import dates
from watchlog.errors import (CannotPerformAction, IntegrityFault, InvalidArgument,
    InvalidIdentifier, RollbackOccurred, StoreError, WatchlogError)
from watchlog.models import EPISODE, EPISODE_WATCHLOG, SCHEMA, SERIES, SERIES_WATCHLOG
from watchlog.store import Condition

logger = logging.getLogger(__name__)


def as_key(value):
    """Integer primary key for `value`, or None if it can not be one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    return None


def check_date(value, name="date"):
    if not value:
        raise InvalidArgument("%s: no date given" % name)
    if not dates.is_iso_date(value):
        raise InvalidArgument("%s: '%s' is not in the format 'YYYY-MM-DD'" % (name, value))


class WatchlogManager(object):
    def __init__(self, store, catalog):
        self.store = store
        self.catalog = catalog

    def close(self):
        self.store.close()

    # Schema

    def ensure_schema(self):
        """Create whichever of the four tables are missing."""
        for layout in SCHEMA:
            if not self.store.has_table(layout.name):
                self._create_table(layout)

    def _create_table(self, layout):
        logger.info("Creating table '%s'", layout.name)
        self.store.start_transaction()
        try:
            if layout.bare:
                self.store.create_bare_table(layout.name, layout.primary_key)
            else:
                self.store.create_table(layout.name, *layout.key_columns(), **layout.options)
            for column, kind in layout.columns:
                self.store.add_column(layout.name, column, kind)
        except (SQLAlchemyError, StoreError) as e:
            self.store.rollback_transaction()
            logger.error("Creating table '%s' failed: %s", layout.name, e)
            raise RollbackOccurred("Failed to create table '%s', any changes made were rolled back"
                % layout.name) from e
        self.store.commit_transaction()

    # Tracked series

    def track_series(self, series_id):
        """Fetch a series and its episodes from the catalog and store them.

        Returns the key the series is stored under. Running it again for the
        same series refreshes the stored data.
        """
        if series_id is None or not str(series_id).strip():
            raise InvalidIdentifier("No series id given")
        return self._store_show(self.catalog.fetch_show(series_id))

    def track_series_by_imdb(self, imdb_id):
        return self._store_show(self.catalog.fetch_show_by_imdb(imdb_id))

    def _store_show(self, show):
        logger.info("Syncing series %s (%s) with %d episodes", show.series_id, show.name, show.num_episodes)
        try:
            with self.store.transaction():
                self._upsert(SERIES, "series_id", show.series_id, [
                    ("name", show.name),
                    ("status", show.status),
                    ("premiere_date", show.premiere_date),
                    ("ended_date", show.ended_date),
                ])
                for episode in show.episodes:
                    self._upsert(EPISODE, "episode_id", episode.episode_id, [
                        ("series_id", show.series_id),
                        ("season_num", episode.season_num),
                        ("episode_num", episode.episode_num),
                        ("name", episode.name),
                        ("airdate", episode.airdate),
                        ("runtime", episode.runtime),
                    ])
        except (SQLAlchemyError, StoreError) as e:
            raise RollbackOccurred("Failed to store series %s, any changes made were rolled back"
                % show.series_id) from e
        return show.series_id

    def _upsert(self, table, key_column, key, values):
        if not self.store.has_primary_key(table, key):
            self.store.insert_row(table, key_column, key)
        for column, value in values:
            self.store.set_cell(table, key, column, value)

    def is_tracked(self, series_id):
        key = as_key(series_id)
        if key is None:
            return False
        return self.store.count_rows(SERIES, Condition("series_id", "=", key)) > 0

    def is_valid_series_id(self, series_id):
        """Tracked already, or known to the catalog."""
        return self.is_tracked(series_id) or self.catalog.validate_show_id(series_id)

    def _ensure_tracked(self, series_id):
        if self.is_tracked(series_id):
            return as_key(series_id)
        return self.track_series(series_id)

    def series_info(self, series_id):
        key = as_key(series_id)
        if key is None or not self.store.has_primary_key(SERIES, key):
            return None
        return dict((column, self.store.get_cell(SERIES, key, column))
            for column in ("name", "status", "premiere_date", "ended_date"))

    # Open records

    def _open_conditions(self, key):
        return (Condition("series_id", "=", key), Condition("finished", "=", 0))

    def _series_key(self, series_id):
        key = as_key(series_id)
        if key is None:
            raise InvalidArgument("'%s' is not a valid series id" % series_id)
        return key

    def count_open_watchlogs(self, series_id):
        key = as_key(series_id)
        if key is None:
            return 0
        return self.store.count_rows(SERIES_WATCHLOG, *self._open_conditions(key))

    def has_open_watchlog(self, series_id):
        return self.count_open_watchlogs(series_id) > 0

    def repair_open_watchlogs(self, series_id):
        """Close every open record of a series except the newest one.

        Only needed when the single open record rule was broken behind our
        back. Returns the ids of the records that were closed.
        """
        key = self._series_key(series_id)
        clashing = self.store.primary_keys(SERIES_WATCHLOG, *self._open_conditions(key))[:-1]
        if clashing:
            logger.warning("Series %s has %d open watchlogs, closing %s",
                key, len(clashing) + 1, ", ".join(map(str, clashing)))
        for watchlog_id in clashing:
            self._mark_finished(watchlog_id)
        return clashing

    def open_watchlog_id(self, series_id, forceful=False):
        """Id of the open record of a series.

        Without an open record this returns None, or with `forceful` creates
        an empty open record and returns its id.
        """
        key = self._series_key(series_id)
        open_ids = self.store.primary_keys(SERIES_WATCHLOG, *self._open_conditions(key))
        if not open_ids:
            if not forceful:
                return None
            watchlog_id = self.store.insert_row(SERIES_WATCHLOG, "series_id", key)
            logger.info("Opened watchlog %s for series %s", watchlog_id, key)
            return watchlog_id
        if len(open_ids) > 1:
            self.repair_open_watchlogs(key)
        return open_ids[-1]

    def _mark_finished(self, watchlog_id):
        self.store.set_cell(SERIES_WATCHLOG, watchlog_id, "finished", 1)
        logger.debug("Closed watchlog %s", watchlog_id)

    def _reopen(self, watchlog_id):
        if self.store.get_cell(SERIES_WATCHLOG, watchlog_id, "finish_date") is not None:
            raise CannotPerformAction("Can not reopen watchlog %s, it has a finish date" % watchlog_id)
        self.store.set_cell(SERIES_WATCHLOG, watchlog_id, "finished", 0)
        logger.debug("Reopened watchlog %s", watchlog_id)

    # Dates

    def set_start_date(self, series_id, date):
        """Start watching a series on `date`.

        The same start date again changes nothing. A different one closes the
        open record and opens a new one.
        """
        check_date(date)
        key = self._ensure_tracked(series_id)
        watchlog_id = self.open_watchlog_id(key, forceful=True)
        current = self.store.get_cell(SERIES_WATCHLOG, watchlog_id, "start_date")
        if current is not None:
            if current == date:
                return watchlog_id
            self._mark_finished(watchlog_id)
            watchlog_id = self.open_watchlog_id(key, forceful=True)
        self.store.set_cell(SERIES_WATCHLOG, watchlog_id, "start_date", date)
        return watchlog_id

    def set_finish_date(self, series_id, date):
        """Finish the open record of a series, creating one if there is none."""
        check_date(date)
        key = self._ensure_tracked(series_id)
        watchlog_id = self.open_watchlog_id(key, forceful=True)
        start_date = self.store.get_cell(SERIES_WATCHLOG, watchlog_id, "start_date")
        if start_date is not None and not dates.is_chronological(start_date, date):
            raise InvalidArgument("date: finish date can not be before the start date of the open record"
                " (%s), add a complete record instead" % start_date)
        self.store.set_cell(SERIES_WATCHLOG, watchlog_id, "finish_date", date)
        self._mark_finished(watchlog_id)
        return watchlog_id

    def add_complete_watchlog(self, series_id, start_date="", finish_date=""):
        """Add a finished record without disturbing the open one.

        At least one of the dates is needed. Returns the id of the new record.
        """
        start_date = start_date or ""
        finish_date = finish_date or ""
        if not start_date and not finish_date:
            raise InvalidArgument("start_date, finish_date: both are empty, at least one date is needed")
        if start_date:
            check_date(start_date, "start_date")
        if finish_date:
            check_date(finish_date, "finish_date")
        if start_date and finish_date and not dates.is_chronological(start_date, finish_date):
            raise InvalidArgument("finish_date: %s is before start_date %s" % (finish_date, start_date))
        key = self._ensure_tracked(series_id)

        self.store.start_transaction()
        try:
            watchlog_id = self._add_complete(key, start_date, finish_date)
        except (SQLAlchemyError, WatchlogError) as e:
            self.store.rollback_transaction()
            logger.error("Adding a complete watchlog for series %s failed: %s", key, e)
            raise RollbackOccurred("Failed to add a complete watchlog for series %s,"
                " any changes made were rolled back" % key) from e
        self.store.commit_transaction()
        return watchlog_id

    def _add_complete(self, key, start_date, finish_date):
        suspended_id = self.open_watchlog_id(key)
        if suspended_id is not None:
            self._mark_finished(suspended_id)

        if start_date:
            self.set_start_date(key, start_date)
        if finish_date:
            watchlog_id = self.set_finish_date(key, finish_date)
        else:
            watchlog_id = self.open_watchlog_id(key)
            if watchlog_id is None:
                raise IntegrityFault("No open watchlog to finish for series %s" % key)
            self._mark_finished(watchlog_id)

        if suspended_id is not None and not self.has_open_watchlog(key):
            try:
                self._reopen(suspended_id)
            except CannotPerformAction as e:
                logger.info("%s", e)
        return watchlog_id

    def remove_watchlog(self, watchlog_id):
        key = self._watchlog_key(watchlog_id)
        self.store.delete_row(SERIES_WATCHLOG, key)
        logger.info("Removed watchlog %s", key)

    # Queries

    def series_ids(self):
        return self.store.primary_keys(SERIES)

    def episode_ids(self):
        return self.store.primary_keys(EPISODE)

    def series_watchlog_ids(self, open_only=False):
        conditions = [Condition("finished", "=", 0)] if open_only else []
        return self.store.primary_keys(SERIES_WATCHLOG, *conditions)

    def episode_watchlog_ids(self):
        return self.store.primary_keys(EPISODE_WATCHLOG)

    def _watchlog_key(self, watchlog_id):
        key = as_key(watchlog_id)
        if key is None:
            raise InvalidArgument("'%s' is not a valid series_watchlog_id" % watchlog_id)
        return key

    def watchlog_exists(self, watchlog_id):
        key = as_key(watchlog_id)
        return key is not None and self.store.has_primary_key(SERIES_WATCHLOG, key)

    def start_date(self, watchlog_id):
        return self.store.get_cell(SERIES_WATCHLOG, self._watchlog_key(watchlog_id), "start_date")

    def finish_date(self, watchlog_id):
        return self.store.get_cell(SERIES_WATCHLOG, self._watchlog_key(watchlog_id), "finish_date")

    def series_id_of(self, watchlog_id):
        return self.store.get_cell(SERIES_WATCHLOG, self._watchlog_key(watchlog_id), "series_id")

    def is_finished(self, watchlog_id):
        key = self._watchlog_key(watchlog_id)
        finished = self.store.get_cell(SERIES_WATCHLOG, key, "finished")
        if finished not in (0, 1):
            raise IntegrityFault("Invalid value %r in column 'finished' of watchlog %s" % (finished, key))
        return finished == 1

    def matching_watchlog_exists(self, series_id, start_date, finish_date, finished):
        """Whether a record with exactly these values exists. Empty dates match NULL."""
        key = as_key(series_id)
        if key is None:
            return False
        return self.store.count_rows(SERIES_WATCHLOG,
            Condition("series_id", "=", key),
            Condition("start_date", "=", start_date or None),
            Condition("finish_date", "=", finish_date or None),
            Condition("finished", "=", 1 if finished else 0)) > 0

    # Rows for display

    def _cell(self, table, key, column):
        if not self.store.has_primary_key(table, key):
            raise StoreError("No row %s in table '%s'" % (key, table))
        return self.store.get_cell(table, key, column)

    def series_rows(self):
        return [(key, self._cell(SERIES, key, "name")) for key in self.series_ids()]

    def _episode_row(self, episode_id):
        series_id = self._cell(EPISODE, episode_id, "series_id")
        return (
            episode_id,
            self._cell(SERIES, series_id, "name"),
            self.store.get_cell(EPISODE, episode_id, "season_num"),
            self.store.get_cell(EPISODE, episode_id, "episode_num"),
            self.store.get_cell(EPISODE, episode_id, "name"),
        )

    def episode_rows(self):
        return [self._episode_row(key) for key in self.episode_ids()]

    def series_watchlog_rows(self, open_only=False):
        rows = []
        for key in self.series_watchlog_ids(open_only):
            series_id = self._cell(SERIES_WATCHLOG, key, "series_id")
            rows.append((
                key,
                series_id,
                self._cell(SERIES, series_id, "name"),
                self.store.get_cell(SERIES_WATCHLOG, key, "start_date"),
                self.store.get_cell(SERIES_WATCHLOG, key, "finish_date"),
                self.store.get_cell(SERIES_WATCHLOG, key, "finished"),
            ))
        return rows

    def episode_watchlog_rows(self):
        rows = []
        for key in self.episode_watchlog_ids():
            episode_id = self._cell(EPISODE_WATCHLOG, key, "episode_id")
            rows.append((key,) + self._episode_row(episode_id) + (
                self.store.get_cell(EPISODE_WATCHLOG, key, "start_date"),
                self.store.get_cell(EPISODE_WATCHLOG, key, "finish_date"),
                self.store.get_cell(EPISODE_WATCHLOG, key, "finished"),
            ))
        return rows
