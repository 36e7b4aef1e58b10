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

class WatchlogError(Exception):
    """Base class for everything watchlog raises on purpose."""


class InvalidArgument(WatchlogError, ValueError):
    """Malformed or impossible input, detected before anything is written."""


class InvalidIdentifier(WatchlogError, ValueError):
    """The show catalog does not know the given identifier."""


class StoreError(WatchlogError):
    pass


class RollbackOccurred(WatchlogError):
    """A multi-step write failed and every partial change was rolled back."""


class IntegrityFault(WatchlogError):
    pass


class CannotPerformAction(WatchlogError):
    pass


class FetchError(WatchlogError):
    pass
