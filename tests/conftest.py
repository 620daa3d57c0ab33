# tests/conftest.py
"""
Shared fixtures: sample items of each variant, a catalog driven by a
settable clock, and a TestClient bound to a fresh catalog.
"""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

import main
from catalog import CatalogManager
from schemas import AudiobookDetails, BookDetails, EMagazineDetails, LendableItem

START = date(2024, 3, 1)


class FakeClock:
    def __init__(self, today: date = START):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today += timedelta(days=days)


def make_book(title="The Great Gatsby", author="F. Scott Fitzgerald") -> LendableItem:
    return LendableItem(
        title=title,
        author=author,
        details=BookDetails(
            page_count=180,
            isbn="978-0-7432-7356-5",
            genre="Fiction",
            publisher="Scribner",
            publication_year=1925,
        ),
    )


def make_audiobook(title="The Hobbit", author="J.R.R. Tolkien") -> LendableItem:
    return LendableItem(
        title=title,
        author=author,
        details=AudiobookDetails(
            duration=480,
            narrator="Rob Inglis",
            format="MP3",
            file_size=256.5,
            downloadable=True,
            quality="High",
            language="English",
        ),
    )


def make_magazine(title="National Geographic", author="Susan Goldberg") -> LendableItem:
    return LendableItem(
        title=title,
        author=author,
        details=EMagazineDetails(
            issue_number=156,
            publisher="National Geographic Society",
            category="Science",
            publication_date=date(2024, 1, 15),
            total_pages=120,
            cover_image_url="https://example.com/ng-cover.jpg",
        ),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(clock):
    return CatalogManager(fine_per_day=10.0, clock=clock)


@pytest.fixture
def client(monkeypatch, manager):
    monkeypatch.setattr(main, "catalog", manager)
    return TestClient(main.app)
