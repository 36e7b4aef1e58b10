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

"""Small table-oriented layer over an SQLite database.

The store knows tables, columns and primary keys, nothing about watchlogs.
Every statement is committed on its own unless an explicit transaction has
been started with start_transaction().
"""

import logging
import operator
import os.path
from collections import namedtuple
from contextlib import contextmanager

from sqlalchemy import (Column, Integer, MetaData, Table, create_engine, delete,
    event, func, insert, inspect, select, update)
from sqlalchemy.exc import NoSuchTableError

from watchlog.errors import StoreError

logger = logging.getLogger(__name__)

COLUMN_TYPES = {
    "string": "TEXT",
    "int": "INTEGER",
    "boolean": "INTEGER DEFAULT 0 CHECK (%(name)s IN (0, 1))",
}

OPERATORS = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class Condition(namedtuple("Condition", "column op value")):
    """A single `column <op> value` filter. A None value compares as NULL."""

    def __new__(cls, column, op, value):
        if op not in OPERATORS:
            raise ValueError("Unsupported operator %r" % op)
        return super(Condition, cls).__new__(cls, column, op, value)


def connect_database(path, memory=False):
    engine = create_engine("sqlite://" if memory else "sqlite:///%s" % os.path.abspath(path))

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        # pysqlite would otherwise commit before DDL, which breaks rollback
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(connection):
        connection.exec_driver_sql("BEGIN")

    return engine


class TableStore(object):
    def __init__(self, engine):
        self.engine = engine
        self.connection = engine.connect()
        self._in_transaction = False
        self._tables = {}

    def close(self):
        if self._in_transaction:
            logger.warning("Closing the store with an open transaction, rolling back")
            self.rollback_transaction()
        self.connection.close()
        self.engine.dispose()

    # Transactions

    @property
    def in_transaction(self):
        return self._in_transaction

    def start_transaction(self):
        if self._in_transaction:
            raise StoreError("A transaction is already in progress")
        if self.connection.in_transaction():
            self.connection.commit()
        self._in_transaction = True

    def commit_transaction(self):
        if not self._in_transaction:
            raise StoreError("No transaction to commit")
        self.connection.commit()
        self._in_transaction = False

    def rollback_transaction(self):
        if not self._in_transaction:
            raise StoreError("No transaction to roll back")
        self.connection.rollback()
        self._in_transaction = False
        self._tables.clear()
        logger.info("Transaction rolled back")

    @contextmanager
    def transaction(self):
        """Run the block atomically, joining a transaction that is already open."""
        if self._in_transaction:
            yield self
            return
        self.start_transaction()
        try:
            yield self
        except Exception:
            self.rollback_transaction()
            raise
        self.commit_transaction()

    @contextmanager
    def _autocommit(self):
        if self._in_transaction:
            yield self.connection
            return
        try:
            yield self.connection
        except Exception:
            if self.connection.in_transaction():
                self.connection.rollback()
            raise
        if self.connection.in_transaction():
            self.connection.commit()

    # Tables and columns

    def table_names(self):
        with self._autocommit() as connection:
            return inspect(connection).get_table_names()

    def has_table(self, name):
        return name in self.table_names()

    def _table(self, name):
        if name not in self._tables:
            with self._autocommit() as connection:
                try:
                    self._tables[name] = Table(name, MetaData(), autoload_with=connection)
                except NoSuchTableError:
                    raise StoreError("Table '%s' not found" % name) from None
        return self._tables[name]

    def _column(self, table, name):
        try:
            return table.c[name]
        except KeyError:
            raise StoreError("No such column: %s.%s" % (table.name, name)) from None

    def _primary_key(self, table):
        columns = list(table.primary_key.columns)
        if not columns:
            raise StoreError("Table '%s' has no primary key" % table.name)
        return columns[0]

    def primary_key_column(self, table):
        return self._primary_key(self._table(table)).name

    def has_column(self, table, column):
        return column in self._table(table).c

    def create_bare_table(self, name, primary_key):
        self.create_table(name, Column(primary_key, Integer, primary_key=True,
            autoincrement=False, nullable=False))

    def create_table(self, name, *columns, **options):
        if self.has_table(name):
            raise StoreError("Table '%s' already exists" % name)
        with self._autocommit() as connection:
            metadata = MetaData()
            # foreign keys resolve against the tables that already exist
            metadata.reflect(bind=connection)
            Table(name, metadata, *columns, **options).create(connection)
        self._tables.pop(name, None)
        logger.debug("Created table '%s'", name)

    def add_column(self, table, column, kind):
        if kind not in COLUMN_TYPES:
            raise StoreError("Unknown column type %r" % kind)
        if self.has_column(table, column):
            raise StoreError("Column '%s' already exists in '%s'" % (column, table))
        quote = self.connection.dialect.identifier_preparer.quote
        definition = COLUMN_TYPES[kind] % {"name": quote(column)}
        with self._autocommit() as connection:
            connection.exec_driver_sql("ALTER TABLE %s ADD COLUMN %s %s"
                % (quote(table), quote(column), definition))
        self._tables.pop(table, None)

    def rename_table(self, old_name, new_name):
        self._table(old_name)
        quote = self.connection.dialect.identifier_preparer.quote
        with self._autocommit() as connection:
            connection.exec_driver_sql("ALTER TABLE %s RENAME TO %s" % (quote(old_name), quote(new_name)))
        self._tables.clear()

    def drop_table(self, name):
        table = self._table(name)
        with self._autocommit() as connection:
            table.drop(connection)
        self._tables.clear()

    # Rows

    def _where(self, table, conditions):
        return [OPERATORS[c.op](self._column(table, c.column), c.value) for c in conditions]

    def insert_row(self, table, column, value):
        """Insert a row with one column set and return its primary key."""
        t = self._table(table)
        self._column(t, column)
        with self._autocommit() as connection:
            result = connection.execute(insert(t).values({column: value}))
            return result.inserted_primary_key[0]

    def get_cell(self, table, key, column):
        t = self._table(table)
        statement = select(self._column(t, column)).where(self._primary_key(t) == key)
        with self._autocommit() as connection:
            return connection.execute(statement).scalar()

    def set_cell(self, table, key, column, value):
        t = self._table(table)
        self._column(t, column)
        statement = update(t).where(self._primary_key(t) == key).values({column: value})
        with self._autocommit() as connection:
            connection.execute(statement)

    def delete_row(self, table, key):
        t = self._table(table)
        with self._autocommit() as connection:
            return connection.execute(delete(t).where(self._primary_key(t) == key)).rowcount

    def primary_keys(self, table, *conditions):
        t = self._table(table)
        pk = self._primary_key(t)
        statement = select(pk).where(*self._where(t, conditions)).order_by(pk)
        with self._autocommit() as connection:
            return list(connection.execute(statement).scalars())

    def has_primary_key(self, table, key):
        t = self._table(table)
        return self.count_rows(table, Condition(self._primary_key(t).name, "=", key)) > 0

    def count_rows(self, table, *conditions):
        t = self._table(table)
        statement = select(func.count()).select_from(t).where(*self._where(t, conditions))
        with self._autocommit() as connection:
            return connection.execute(statement).scalar()

    def max_value(self, table, column):
        t = self._table(table)
        with self._autocommit() as connection:
            return connection.execute(select(func.max(self._column(t, column)))).scalar()
