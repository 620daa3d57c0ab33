"""
Item Schemas for the Lending Catalog

A catalog entry is a LendableItem: the common record (id, title, author),
its lending state, and a variant payload tagged by ``kind``.

Variants:
- Book
- Audiobook (playable)
- E-Magazine
"""

import re
from datetime import date, timedelta
from typing import Annotated, Dict, List, Literal, Optional, Protocol, Tuple, Union, runtime_checkable

from pydantic import BaseModel, Field, StringConstraints, computed_field, field_validator, model_validator

from errors import InvalidArgumentError, InvalidStateError

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

DEFAULT_FINE_PER_DAY = 10.0

# Months are a flat 30 days
DURATION_UNITS = {
    "day": 1,
    "days": 1,
    "week": 7,
    "weeks": 7,
    "month": 30,
    "months": 30,
}

AMOUNT_RE = re.compile(r"[+-]?[0-9]+")

PLAYBACK_SPEEDS = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0)


def parse_duration(text: Optional[str]) -> int:
    """Turn a loan period such as ``"2 weeks"`` into a number of days."""
    if text is None or not text.strip():
        raise InvalidArgumentError("Borrow duration cannot be empty")
    parts = text.strip().lower().split()
    if len(parts) != 2:
        raise InvalidArgumentError(
            f"Invalid duration format {text!r}. Expected 'number unit' (e.g. '7 days')"
        )
    amount_raw, unit = parts
    if not AMOUNT_RE.fullmatch(amount_raw):
        raise InvalidArgumentError(f"Invalid duration amount: {amount_raw}")
    try:
        amount = int(amount_raw)
    except ValueError:
        raise InvalidArgumentError(f"Invalid duration amount: {amount_raw}") from None
    if amount <= 0:
        raise InvalidArgumentError(f"Duration amount must be positive: {amount}")
    if unit not in DURATION_UNITS:
        raise InvalidArgumentError(f"Unsupported time unit: {unit}")
    return amount * DURATION_UNITS[unit]


@runtime_checkable
class Playable(Protocol):
    """Content that can be played back."""

    duration: int
    format: str
    file_size: float
    downloadable: bool
    quality: str


class BookDetails(BaseModel):
    kind: Literal["Book"] = "Book"
    page_count: int = Field(..., gt=0, description="Number of pages")
    isbn: NonEmptyStr = Field(..., description="ISBN identifier")
    genre: NonEmptyStr
    publisher: NonEmptyStr
    publication_year: int = Field(..., description="Year of publication")

    @field_validator("publication_year")
    @classmethod
    def _year_in_range(cls, v: int) -> int:
        if v < 1000 or v > date.today().year:
            raise ValueError(f"Invalid publication year: {v}")
        return v

    def estimated_reading_time(self) -> int:
        """Reading time in minutes, at two minutes per page."""
        return self.page_count * 2

    def describe(self) -> str:
        return (
            f"Pages: {self.page_count}, ISBN: {self.isbn}, Genre: {self.genre}, "
            f"Publisher: {self.publisher}, Year: {self.publication_year}"
        )


class AudiobookDetails(BaseModel):
    kind: Literal["Audiobook"] = "Audiobook"
    duration: int = Field(..., gt=0, description="Length in minutes")
    narrator: NonEmptyStr
    format: NonEmptyStr = Field(..., description="Audio format, e.g. MP3 or AAC")
    file_size: float = Field(..., gt=0, description="File size in MB")
    downloadable: bool = False
    quality: NonEmptyStr = Field(..., description="High, Medium or Low")
    language: NonEmptyStr

    def duration_in_hours(self) -> float:
        return round(self.duration / 60.0, 1)

    def playback_speeds(self) -> Tuple[float, ...]:
        return PLAYBACK_SPEEDS

    def describe(self) -> str:
        return (
            f"Duration: {self.duration} min ({self.duration_in_hours():.1f} hrs), "
            f"Narrator: {self.narrator}, Format: {self.format}, Size: {self.file_size:.1f} MB, "
            f"Quality: {self.quality}, Language: {self.language}, Downloadable: {self.downloadable}"
        )


class EMagazineDetails(BaseModel):
    kind: Literal["E-Magazine"] = "E-Magazine"
    issue_number: int = Field(..., gt=0)
    publisher: NonEmptyStr
    category: NonEmptyStr
    publication_date: date
    total_pages: int = Field(..., gt=0)
    cover_image_url: Optional[str] = None
    articles: List[str] = Field(default_factory=list, description="Article titles in this issue")
    archived: bool = False

    @field_validator("publication_date")
    @classmethod
    def _not_in_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError(f"Publication date cannot be in the future: {v}")
        return v

    @field_validator("articles")
    @classmethod
    def _articles_not_blank(cls, v: List[str]) -> List[str]:
        if any(not a or not a.strip() for a in v):
            raise ValueError("Article titles cannot be empty")
        return [a.strip() for a in v]

    def add_article(self, title: str) -> None:
        if title is None or not title.strip():
            raise InvalidArgumentError("Article title cannot be empty")
        self.articles.append(title.strip())

    def list_articles(self) -> List[str]:
        return list(self.articles)

    def article_count(self) -> int:
        return len(self.articles)

    def archive_issue(self) -> None:
        if self.archived:
            raise InvalidStateError(f"Magazine issue {self.issue_number} is already archived")
        self.archived = True

    def unarchive_issue(self) -> None:
        if not self.archived:
            raise InvalidStateError(f"Magazine issue {self.issue_number} is not archived")
        self.archived = False

    def age_in_days(self, today: Optional[date] = None) -> int:
        return ((today or date.today()) - self.publication_date).days

    def is_recent(self, today: Optional[date] = None) -> bool:
        """Published within the last 30 days."""
        return self.age_in_days(today) <= 30

    def describe(self) -> str:
        return (
            f"Issue: {self.issue_number}, Publisher: {self.publisher}, Category: {self.category}, "
            f"Published: {self.publication_date.isoformat()}, Pages: {self.total_pages}, "
            f"Articles: {self.article_count()}, Archived: {self.archived}"
        )


ItemDetails = Annotated[
    Union[BookDetails, AudiobookDetails, EMagazineDetails],
    Field(discriminator="kind"),
]


class LendableItem(BaseModel):
    """
    One catalog entry and its lending state machine.

    States are Available (initial) and CheckedOut. The borrower name and both
    dates are set exactly while the item is checked out.
    """

    id: Optional[int] = Field(None, description="Catalog id, assigned when the item is added")
    title: NonEmptyStr
    author: NonEmptyStr
    details: ItemDetails
    available: bool = Field(True, description="True while the item is on the shelf")
    borrower_name: Optional[str] = None
    borrow_date: Optional[date] = None
    due_date: Optional[date] = None

    @model_validator(mode="after")
    def _lending_state_consistent(self):
        loan_fields = (self.borrower_name, self.borrow_date, self.due_date)
        if self.available and any(f is not None for f in loan_fields):
            raise ValueError("An available item cannot carry borrower or loan dates")
        if not self.available:
            if any(f is None for f in loan_fields):
                raise ValueError("A checked out item needs a borrower, borrow date and due date")
            if self.due_date < self.borrow_date:
                raise ValueError("Due date cannot precede borrow date")
        return self

    @computed_field
    @property
    def item_type(self) -> str:
        return self.details.kind

    def specific_info(self) -> str:
        return self.details.describe()

    def is_playable(self) -> bool:
        return isinstance(self.details, Playable)

    def borrow(self, borrower_name: str, duration: str, today: Optional[date] = None) -> None:
        if not self.available:
            raise InvalidStateError(f"Item {self.id} is not available for borrowing")
        if borrower_name is None or not borrower_name.strip():
            raise InvalidArgumentError("Borrower name cannot be empty")
        days = parse_duration(duration)
        borrow_date = today or date.today()
        try:
            due_date = borrow_date + timedelta(days=days)
        except OverflowError:
            raise InvalidArgumentError(f"Borrow duration is too long: {duration}") from None

        self.borrower_name = borrower_name.strip()
        self.borrow_date = borrow_date
        self.due_date = due_date
        self.available = False

    def calculate_fine(self, daily_rate: float = DEFAULT_FINE_PER_DAY, today: Optional[date] = None) -> float:
        if self.available or self.due_date is None:
            return 0.0
        overdue_days = ((today or date.today()) - self.due_date).days
        if overdue_days <= 0:
            return 0.0
        return overdue_days * daily_rate

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.available or self.due_date is None:
            return False
        return (today or date.today()) > self.due_date

    def return_item(self, daily_rate: float = DEFAULT_FINE_PER_DAY, today: Optional[date] = None) -> float:
        """Check the item back in and return the fine owed at that moment."""
        if self.available:
            raise InvalidStateError(f"Item {self.id} is already available")
        fine = self.calculate_fine(daily_rate, today)

        self.borrower_name = None
        self.borrow_date = None
        self.due_date = None
        self.available = True
        return fine

    def __str__(self) -> str:
        loan = ""
        if not self.available:
            loan = f", Borrower: {self.borrower_name}, Due: {self.due_date.isoformat()}"
        return (
            f"{self.item_type} [ID: {self.id}, Title: {self.title}, Author: {self.author}, "
            f"Available: {self.available}{loan}]"
        )


class LibraryStatistics(BaseModel):
    total_items: int = 0
    available_items: int = 0
    borrowed_items: int = 0
    overdue_items: int = 0
    type_count: Dict[str, int] = Field(default_factory=dict, description="Items per variant tag")
    total_fines: float = 0.0
    total_borrowers: int = Field(0, description="Distinct borrowers who ever borrowed")
