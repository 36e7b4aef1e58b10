# coding: utf-8
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
import os.path
import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

import httpx
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text
from sqlalchemy.exc import SQLAlchemyError

from watchlog import tables
from watchlog.errors import WatchlogError
from watchlog.manager import WatchlogManager
from watchlog.store import TableStore, connect_database
from watchlog.tvmaze import BASE_URL, TVMazeClient

DEFAULT_DATABASE = os.path.expanduser("~/.watchlog.db")
DEFAULT_LOG_FILE = os.path.expanduser("~/.watchlog.log")

logger = logging.getLogger(__name__)

PRINTERS = {
		"series": (tables.SERIES_COLUMNS, lambda manager: manager.series_rows()),
		"episodes": (tables.EPISODE_COLUMNS, lambda manager: manager.episode_rows()),
		"watchlog": (tables.SERIES_WATCHLOG_COLUMNS, lambda manager: manager.series_watchlog_rows()),
		"open": (tables.SERIES_WATCHLOG_COLUMNS, lambda manager: manager.series_watchlog_rows(open_only=True)),
		"episode-watchlog": (tables.EPISODE_WATCHLOG_COLUMNS, lambda manager: manager.episode_watchlog_rows()),
	}

def parse_args(argv=None):
	from textwrap import dedent
	keys = dedent("""
		Keys
		h\t: Move to a view in left
		l\t: Move to a view in right
		1-4\t: Move to a specific view
		j\t: Focus next item
		k\t: Focus previous item
		a\t: Add a watchlog entry
		t\t: Track a series by its TVMaze id
		f\t: Set the finish date of the selected open entry
		x\t: Delete the selected entry
		q, Q\t: Exit Watchlog
	""")
	parser = ArgumentParser(description="Tool for keeping a log of watched tv-series.",
			epilog=keys,
			formatter_class=RawDescriptionHelpFormatter)
	parser.add_argument("-m", "--memory", action="store_true", help="Use temporary in-memory database")
	parser.add_argument("-d", "--database", default=DEFAULT_DATABASE, help="Path to a database")
	parser.add_argument("--api-url", default=BASE_URL, help="Base URL of the TVMaze API")
	parser.add_argument("-t", "--track", metavar="ID", help="Track (or refresh) a series before starting")
	parser.add_argument("--imdb", action="store_true", help="The id given to --track is an IMDb id")
	parser.add_argument("-p", "--print", dest="print_table", choices=sorted(PRINTERS),
			help="Print a table and exit")
	parser.add_argument("--log-file", default=DEFAULT_LOG_FILE, help="Path to the log file")
	parser.add_argument("-v", "--verbose", action="store_true", help="Log debugging information")
	return parser.parse_args(argv)

def setup_logging(path, verbose=False):
	logging.basicConfig(
			filename=path,
			level=logging.DEBUG if verbose else logging.INFO,
			format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
			datefmt="%Y-%m-%d %H:%M:%S")

def print_table(manager, name, out=None):
	columns, rows = PRINTERS[name]
	table = Table(box=box.ASCII)
	for column, width in columns:
		table.add_column(column, justify="right", width=width, no_wrap=True, overflow="crop")
	for row in rows(manager):
		table.add_row(*[Text(tables.cell_text(value)) for value in row])
	# each column is padded by one space on both sides and followed by a border
	console = Console(file=out, width=sum(width + 3 for _, width in columns) + 1, highlight=False)
	console.print(table)

def open_manager(database, memory=False, api_url=BASE_URL):
	engine = connect_database(database, memory)
	manager = WatchlogManager(TableStore(engine), TVMazeClient(api_url))
	try:
		manager.ensure_schema()
	except Exception:
		manager.catalog.close()
		manager.close()
		raise
	return manager

def run(args):
	manager = open_manager(args.database, args.memory, args.api_url)
	try:
		if args.track:
			if args.imdb:
				manager.track_series_by_imdb(args.track)
			else:
				manager.track_series(args.track)
		if args.print_table:
			print_table(manager, args.print_table)
		else:
			from watchlog.interface import MainWindow
			MainWindow(manager).main()
	finally:
		manager.catalog.close()
		manager.close()

def main(argv=None):
	args = parse_args(argv)
	setup_logging(args.log_file, args.verbose)
	try:
		run(args)
	except (WatchlogError, SQLAlchemyError, httpx.HTTPError) as e:
		logger.exception("Watchlog failed")
		sys.stderr.write("watchlog: %s\n" % e)
		return 1
	return 0

if __name__ == "__main__":
	sys.exit(main())
