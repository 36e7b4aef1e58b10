import io

import pytest

from watchlog import app, tables
from watchlog.errors import RollbackOccurred
from watchlog.manager import WatchlogManager
from watchlog.store import TableStore, connect_database
from watchlog.tvmaze import BASE_URL


def test_parse_args_defaults():
    args = app.parse_args([])
    assert args.database == app.DEFAULT_DATABASE
    assert not args.memory
    assert args.api_url == BASE_URL
    assert args.track is None
    assert not args.imdb
    assert args.print_table is None
    assert args.log_file == app.DEFAULT_LOG_FILE
    assert not args.verbose


def test_parse_args():
    args = app.parse_args(["-m", "-t", "tt0279600", "--imdb", "-p", "open", "-v"])
    assert args.memory
    assert args.track == "tt0279600"
    assert args.imdb
    assert args.print_table == "open"
    assert args.verbose


def test_parse_args_unknown_table():
    with pytest.raises(SystemExit):
        app.parse_args(["--print", "movies"])


def cells(line):
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def test_print_table(manager):
    manager.set_start_date("2", "2021-01-01")
    out = io.StringIO()
    app.print_table(manager, "watchlog", out)
    lines = out.getvalue().splitlines()
    assert cells(lines[1]) == [name for name, _ in tables.SERIES_WATCHLOG_COLUMNS]
    assert cells(lines[3]) == ["1", "2", "Show 2", "2021-01-01", "", "0"]
    # right aligned to the column width
    assert "|               Show 2 |" in lines[3]
    assert len(set(len(line) for line in lines)) == 1


def test_print_table_crops_long_cells(manager):
    manager.track_series("2")
    manager.store.set_cell("series", 2, "name", "The Adventures of [bold]Superboy[/bold]")
    out = io.StringIO()
    app.print_table(manager, "series", out)
    row = cells(out.getvalue().splitlines()[3])
    assert row == ["2", "The Adventures of [b"]


def test_print_every_table(manager):
    manager.track_series("1")
    for name in app.PRINTERS:
        out = io.StringIO()
        app.print_table(manager, name, out)
        assert out.getvalue()


def test_main_prints(tmp_path, capsys):
    log_file = str(tmp_path / "watchlog.log")
    assert app.main(["-m", "-p", "series", "--log-file", log_file]) == 0
    assert "series_id" in capsys.readouterr().out


def test_main_reports_failures(tmp_path, monkeypatch, capsys):
    def open_manager(database, memory=False, api_url=BASE_URL):
        raise RollbackOccurred("Failed to create table 'series'")

    monkeypatch.setattr(app, "open_manager", open_manager)
    assert app.main(["-m", "-p", "series", "--log-file", str(tmp_path / "watchlog.log")]) == 1
    assert "Failed to create table 'series'" in capsys.readouterr().err


def test_database_is_reused(tmp_path, catalog):
    path = str(tmp_path / "watchlog.db")
    manager = app.open_manager(path)
    try:
        assert manager.store.has_table("series_watchlog")
    finally:
        manager.catalog.close()
        manager.close()

    manager = WatchlogManager(TableStore(connect_database(path)), catalog)
    try:
        manager.set_start_date("3", "2021-01-01")
    finally:
        manager.close()

    manager = app.open_manager(path)
    try:
        assert manager.series_ids() == [3]
        assert manager.count_open_watchlogs(3) == 1
    finally:
        manager.catalog.close()
        manager.close()
