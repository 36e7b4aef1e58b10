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

import logging

import httpx

from watchlog.errors import FetchError

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 3
# 200: OK, 301: moved, 404: not found. Anything else (429 rate limit...) is fatal.
ACCEPTED_STATUS = (200, 301, 404)


def redirect_url(response):
    if response.status_code != 301:
        raise ValueError("Response does not have a redirect")
    if "location" not in response.headers:
        raise FetchError("Redirect from URL '%s' has no location" % response.url)
    return str(response.url.join(response.headers["location"]))


class Connector(object):
    """GETs JSON endpoints below a base URL, following permanent redirects.

    A client passed in keeps its own redirect limit.
    """

    def __init__(self, base_url, client=None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=10, max_redirects=MAX_REDIRECTS)

    def get(self, endpoint, params=None, follow_redirects=True):
        url = self.base_url + endpoint
        logger.debug("GET %s %s", url, params or "")
        try:
            response = self.client.get(url, params=params, follow_redirects=follow_redirects)
        except httpx.TooManyRedirects as e:
            raise FetchError("Too many redirects when requesting URL '%s'" % url) from e
        for hop in response.history:
            logger.debug("Followed redirect from %s", hop.url)
        if follow_redirects and response.status_code == 301:
            # httpx hands back a redirect it can not follow
            redirect_url(response)
        if response.status_code not in ACCEPTED_STATUS:
            raise FetchError("HTTP response code %d for URL '%s'" % (response.status_code, url))
        return response

    def close(self):
        self.client.close()
