#!/usr/bin/env python3

from setuptools import setup, find_packages
from pathlib import Path

readme = Path(__file__).parent.absolute() / "README.md"
long_description = readme.read_text(encoding="utf-8")

setup(
    name="watchlog",
    version="0.1.0",
    description="Utility for keeping a log of when tv-series were watched.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="The Watchlog authors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={"console_scripts": ["watchlog=watchlog.app:main"]},
    python_requires=">=3.8",
    install_requires=["urwid", "sqlalchemy>=2.0", "httpx", "rich"],
    extras_require={"test": ["pytest"]},
    classifiers=[
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Environment :: Console :: Curses",
        "Intended Audience :: End Users/Desktop",
        "Programming Language :: Python :: 3",
        "Topic :: Utilities",
    ],
    keywords=["log", "tv", "series", "tvmaze", "watchlist"],
)
