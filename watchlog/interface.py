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

import sys

import httpx
import urwid
from sqlalchemy.exc import SQLAlchemyError

from watchlog import dates
from watchlog.errors import InvalidIdentifier, WatchlogError
from watchlog.tables import (EPISODE_COLUMNS, SERIES_COLUMNS, SERIES_WATCHLOG_COLUMNS,
	cell_text)

FAILURES = (WatchlogError, SQLAlchemyError, httpx.HTTPError)

class MainWindow(object):
	palette = [
			("body", "default", "default"),
			("reveal focus", "black", "white"),
			("series", "white", "dark blue"),
			("episodes", "white", "dark cyan"),
			("watchlog", "white", "dark green"),
			("open", "white", "dark magenta"),
			("highlight", "black", "white"),
			("error", "white", "dark red"),
			("edit", "white", "dark gray"),
			("button", "white", "dark blue"),
			("dialog", "black", "light gray")
		]
	frame = None

	def __init__(self, manager):
		self.manager = manager
		self.views = [
				View("Tracked Series", "series", SERIES_COLUMNS, manager, manager.series_rows),
				View("Tracked Episodes", "episodes", EPISODE_COLUMNS, manager, manager.episode_rows),
				WatchlogView("Watchlog", "watchlog", manager, open_only=False),
				WatchlogView("Open Watchlog", "open", manager, open_only=True),
			]
		self.current = 0
		self.display_view(self.current)

	def unhandled_input(self, key):
		if key in ("q", "Q"):
			raise urwid.ExitMainLoop()
		elif not self.displaying_dialog:
			if key in ("h", "left"):
				self.display_view(self.current - 1 if (self.current - 1) >= 0 else len(self.views) - 1)
			elif key in ("l", "right"):
				self.display_view(self.current + 1 if (self.current + 1) <= len(self.views) - 1 else 0)
			elif key in map(str, range(1, len(self.views) + 1)):
				self.display_view(int(key) - 1)
			elif key == "a":
				self.show_add_entry_dialog()

	def show_add_entry_dialog(self):
		dialog = AddEntryDialog(self.views[self.current], self.manager)
		urwid.connect_signal(dialog, "closed", self.add_entry_dialog_closed)
		self.frame.body = dialog

	def add_entry_dialog_closed(self, message=None):
		self.display_view(self.current)
		if message:
			self.views[self.current].show_message(message)

	def display_view(self, index):
		self.current = index
		self.views[index].reload()
		self.set_terminal_title("Watchlog - %s" % self.views[index].title)
		if self.frame:
			self.frame.body = self.views[index]
		else:
			self.frame = urwid.Frame(self.views[index])

	@property
	def displaying_dialog(self):
		return isinstance(self.frame.body, AddEntryDialog)

	def set_terminal_title(self, title):
		sys.stdout.write("\x1b]2;%s\x07" % title)

	def main(self):
		self.loop = urwid.MainLoop(self.frame,
				self.palette,
				unhandled_input=self.unhandled_input)
		self.loop.run()

class View(urwid.WidgetWrap):
	def __init__(self, title, attr, columns, manager, load):
		self.title = title
		self.attr = attr
		self.columns = columns
		self.manager = manager
		self.load = load
		self.walker = urwid.SimpleFocusListWalker([])
		self.table = DataTable(columns, self.walker)
		self.setup_widgets()
		urwid.WidgetWrap.__init__(self, urwid.Frame(self.body, self.header, self.footer))

	@property
	def focused_row(self):
		entry = self.table.list_box.focus
		return entry.original_widget.row if entry is not None else None

	def keypress(self, size, key):
		if self._w.focus_position == "footer":
			return self._w.keypress(size, key)
		if key == "t":
			self.show_input(Prompt(u"TVMaze id of the series to track: "), self.track_confirmation)
		else:
			return self._w.keypress(size, key)

	def track_confirmation(self, text):
		if self.run(self.manager.track_series, text.strip()):
			self.show_message(u"Series %s is tracked" % text.strip())

	def run(self, action, *args):
		try:
			action(*args)
		except FAILURES as e:
			self.reload()
			self.show_message(str(e), "error")
			return False
		self.reload()
		return True

	def show_input(self, widget, callback, *args):
		def wrapper(*signal_args):
			self._w.focus_position = "body"
			return callback(*(signal_args + args))
		urwid.connect_signal(widget, "input_received", wrapper)
		urwid.connect_signal(widget, "input_cancelled", self.redraw_footer)
		self.footer = urwid.AttrMap(widget, self.attr)
		self.refresh()
		self._w.focus_position = "footer"

	def show_message(self, message, attr=None):
		self.footer = urwid.AttrMap(urwid.Text(message, "center"), attr or self.attr)
		self.refresh()

	def redraw_footer(self):
		self._w.focus_position = "body"
		self.setup_footer()
		self.refresh()

	def refresh(self):
		self._w.body = self.body
		self._w.header = self.header
		self._w.footer = self.footer

	def reload(self):
		try:
			rows = self.load()
		except FAILURES as e:
			self.walker[:] = []
			self.show_message(str(e), "error")
			return
		self.walker[:] = [urwid.AttrMap(Entry(self.columns, row), None, "reveal focus") for row in rows]
		self.setup_footer()
		self.refresh()

	def setup_header(self):
		self.header = urwid.AttrMap(
			urwid.Columns([
					("weight", 0.1, urwid.Text("<")),
					urwid.Text(self.title, "center"),
					("weight", 0.1, urwid.Text(">", "right"))
				]),
			self.attr)

	def setup_body(self):
		self.body = urwid.AttrMap(urwid.Pile([
				("pack", urwid.Divider(u" ")),
				self.table
			], focus_item=1), "body")

	def setup_footer(self):
		self.footer = urwid.AttrMap(
				urwid.Text(u"Total of %d entries" % len(self.walker), "center"),
				self.attr
			)

	def setup_widgets(self):
		self.setup_header()
		self.setup_body()
		self.setup_footer()

class WatchlogView(View):
	def __init__(self, title, attr, manager, open_only):
		View.__init__(self, title, attr, SERIES_WATCHLOG_COLUMNS, manager,
				lambda: manager.series_watchlog_rows(open_only))

	def keypress(self, size, key):
		if self._w.focus_position == "footer":
			return self._w.keypress(size, key)
		row = self.focused_row
		if key == "f" and row is not None:
			self.handle_finish(row)
		elif key == "x" and row is not None:
			self.handle_delete(row)
		else:
			return View.keypress(self, size, key)

	def handle_finish(self, row):
		if row[5]:
			self.show_message(u"Entry %s is already finished" % row[0], "error")
			return
		self.show_input(Prompt(u"Finish date for \"%s\" [YYYY-MM-DD, empty for today]: " % row[2]),
				self.finish_confirmation, row)

	def finish_confirmation(self, text, row):
		date = dates.expand(text) or dates.today()
		if self.run(self.manager.set_finish_date, row[1], date):
			self.show_message(u"Finished entry %s on %s" % (row[0], date))

	def handle_delete(self, row):
		self.show_input(Prompt(u"Do you really want to delete entry %s of \"%s\" [y/N]?: " % (row[0], row[2])),
				self.delete_confirmation, row)

	def delete_confirmation(self, text, row):
		if text.lower() == u"y":
			if self.run(self.manager.remove_watchlog, row[0]):
				self.show_message(u"Deleted entry %s" % row[0])
		else:
			self.redraw_footer()

class DataTable(urwid.Pile):
	def __init__(self, columns, walker):
		self.list_box = VimStyleListBox(walker)
		urwid.Pile.__init__(self, [
				("pack", urwid.Columns([("weight", width, urwid.Text(name, align="right", wrap="clip"))
					for name, width in columns], dividechars=1)),
				("pack", urwid.Divider(u"─")),
				self.list_box
			], focus_item=2)

class Entry(urwid.WidgetWrap):
	def __init__(self, columns, row):
		self.row = row
		urwid.WidgetWrap.__init__(self, urwid.Columns([
				("weight", width, urwid.Text(cell_text(value), align="right", wrap="clip"))
				for (_, width), value in zip(columns, row)
			], dividechars=1))

	def selectable(self):
		return True

	def keypress(self, size, key):
		return key

class VimStyleListBox(urwid.ListBox):
	""" ListBox that changes focus with j and k keys and supports mouse wheel scrolling"""

	def keypress(self, size, key):
		if key == "k":
			return urwid.ListBox.keypress(self, size, "up")
		elif key == "j":
			return urwid.ListBox.keypress(self, size, "down")
		else:
			return urwid.ListBox.keypress(self, size, key)

	def mouse_event(self, size, event, button, col, row, focus):
		if button == 4: # Scroll wheel up
			urwid.ListBox.keypress(self, size, "up")
			return True
		elif button == 5: # Scroll wheel down
			urwid.ListBox.keypress(self, size, "down")
			return True
		else:
			return False

class Prompt(urwid.Edit):
	signals = ["input_received", "input_cancelled"]

	def format(self, string):
		return string

	def keypress(self, size, key):
		if key == "enter":
			urwid.emit_signal(self, "input_received", self.format(self.get_edit_text()))
		elif key == "esc":
			urwid.emit_signal(self, "input_cancelled")
		else:
			return urwid.Edit.keypress(self, size, key)

class AddEntryDialog(urwid.Overlay):
	signals = ["closed"]
	selected = 0

	def __init__(self, background, manager):
		self.manager = manager
		self.series_edit = urwid.Edit(u"Series ID:   ")
		self.start_edit = urwid.Edit(u"Start date:  ")
		self.finish_edit = urwid.Edit(u"Finish date: ")
		self.complete_box = urwid.CheckBox(u"Complete entry")
		self.add_button = urwid.Button(u"Add", self.add_button_click)
		self.message = urwid.Text(u"Dates as YYYY-MM-DD or 'today'")
		self.content = urwid.Pile([
				urwid.AttrMap(self.series_edit, "edit"),
				urwid.AttrMap(self.start_edit, "edit"),
				urwid.AttrMap(self.finish_edit, "edit"),
				self.complete_box,
				urwid.AttrMap(self.add_button, "button"),
				urwid.Divider(u" "),
				self.message
			])
		self.tab_index = [0, 1, 2, 3, 4]
		linebox = urwid.AttrMap(urwid.LineBox(urwid.Filler(self.content), u"Add Watchlog Entry"), "dialog")
		self.select()
		urwid.Overlay.__init__(self, linebox, background, "center", 50, "middle", 13)

	def select(self):
		self.content.focus_position = self.tab_index[self.selected]

	def add_button_click(self, widget):
		try:
			message = self.add_entry(self.series_edit.get_edit_text().strip(),
					dates.expand(self.start_edit.get_edit_text()),
					dates.expand(self.finish_edit.get_edit_text()),
					self.complete_box.get_state())
		except FAILURES as e:
			self.message.set_text(("error", str(e)))
			return
		urwid.emit_signal(self, "closed", message)

	def keypress(self, size, key):
		if key == "tab":
			self.selected = (self.selected + 1) % len(self.tab_index)
			self.select()
		elif key == "esc":
			urwid.emit_signal(self, "closed")
		else:
			return urwid.Overlay.keypress(self, size, key)

	def add_entry(self, series_id, start_date, finish_date, complete):
		if not self.manager.is_valid_series_id(series_id):
			raise InvalidIdentifier(u"'%s' is not a valid TVMaze id" % series_id)
		if complete or finish_date:
			self.manager.add_complete_watchlog(series_id, start_date, finish_date)
			return u"Added a complete entry for series %s" % series_id
		self.manager.set_start_date(series_id, start_date)
		return u"Started watching series %s on %s" % (series_id, start_date)
