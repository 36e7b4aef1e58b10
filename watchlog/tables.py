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

SERIES_COLUMNS = (
    ("series_id", 15),
    ("series_name", 20),
)

EPISODE_COLUMNS = (
    ("episode_id", 15),
    ("series_name", 20),
    ("season_num", 11),
    ("episode_num", 11),
    ("episode_name", 20),
)

SERIES_WATCHLOG_COLUMNS = (
    ("series_watchlog_id", 20),
    ("series_id", 15),
    ("series_name", 20),
    ("start_date", 11),
    ("finish_date", 11),
    ("finished", 8),
)

EPISODE_WATCHLOG_COLUMNS = (
    ("episode_watchlog_id", 20),
    ("episode_id", 15),
    ("series_name", 20),
    ("season_num", 11),
    ("episode_num", 11),
    ("episode_name", 20),
    ("start_date", 11),
    ("finish_date", 11),
    ("finished", 8),
)


def cell_text(value):
    return u"" if value is None else str(value)
