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

from sqlalchemy import Column, ForeignKey, Integer

SERIES = "series"
EPISODE = "episode"
SERIES_WATCHLOG = "series_watchlog"
EPISODE_WATCHLOG = "episode_watchlog"


class TableLayout(object):
    def __init__(self, name, primary_key, columns, parent=None, autoincrement=False, parent_required=False):
        self.name = name
        self.primary_key = primary_key
        self.columns = columns
        self.parent = parent
        self.autoincrement = autoincrement
        self.parent_required = parent_required

    @property
    def bare(self):
        return self.parent is None and not self.autoincrement

    @property
    def options(self):
        return {"sqlite_autoincrement": True} if self.autoincrement else {}

    def key_columns(self):
        columns = [Column(self.primary_key, Integer, primary_key=True, autoincrement=self.autoincrement)]
        if self.parent:
            table, key = self.parent
            columns.append(Column(key, Integer, ForeignKey("%s.%s" % (table, key)),
                nullable=not self.parent_required))
        return columns


SCHEMA = [
    TableLayout(SERIES, "series_id", [
        ("name", "string"),
        ("status", "string"),
        ("premiere_date", "string"),
        ("ended_date", "string"),
    ]),
    TableLayout(EPISODE, "episode_id", [
        ("season_num", "string"),
        ("name", "string"),
        ("episode_num", "string"),
        ("airdate", "string"),
        ("runtime", "string"),
        ("alternate_episode_num", "string"),
    ], parent=(SERIES, "series_id")),
    TableLayout(SERIES_WATCHLOG, "series_watchlog_id", [
        ("start_date", "string"),
        ("finish_date", "string"),
        ("finished", "boolean"),
    ], parent=(SERIES, "series_id"), autoincrement=True, parent_required=True),
    TableLayout(EPISODE_WATCHLOG, "episode_watchlog_id", [
        ("start_date", "string"),
        ("finish_date", "string"),
        ("finished", "boolean"),
    ], parent=(EPISODE, "episode_id"), autoincrement=True, parent_required=True),
]
