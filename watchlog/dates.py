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

import re
from datetime import date, datetime

ISO_DATE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def parse(text):
    return datetime.strptime(text, "%Y-%m-%d").date()


def is_iso_date(text):
    if not isinstance(text, str) or not ISO_DATE.match(text):
        return False
    try:
        parse(text)
    except ValueError:
        return False
    return True


def is_chronological(first, second):
    """True unless `second` is earlier than `first`. Equal dates are in order."""
    return parse(second) >= parse(first)


def today():
    return date.today().isoformat()


def expand(text):
    text = text.strip()
    if text.lower() == "today":
        return today()
    return text
