"""
In-memory catalog for the lending library.

CatalogManager owns every LendableItem, hands out ids, delegates lending to
the items and keeps the borrower-level bookkeeping (history and accumulated
fines). Query methods always return fresh lists or dicts.
"""

import math
from datetime import date
from typing import Callable, Dict, List, Optional

from app_logger import get_logger
from errors import CatalogError, InvalidArgumentError, InvalidStateError, ItemNotFoundError
from schemas import DEFAULT_FINE_PER_DAY, EMagazineDetails, LendableItem, LibraryStatistics

log = get_logger("manager")


class CatalogManager:
    def __init__(self, fine_per_day: float = DEFAULT_FINE_PER_DAY, clock: Callable[[], date] = date.today):
        if not math.isfinite(fine_per_day) or fine_per_day < 0:
            raise InvalidArgumentError(f"Fine per day must be a non-negative number: {fine_per_day}")
        self.items: Dict[int, LendableItem] = {}
        self.borrower_history: Dict[str, List[LendableItem]] = {}
        self.borrower_fines: Dict[str, float] = {}
        self.next_id = 1
        self.fine_per_day = fine_per_day
        self.clock = clock

    def _require(self, item_id: int) -> LendableItem:
        item = self.items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def _require_magazine(self, item_id: int) -> EMagazineDetails:
        item = self._require(item_id)
        if not isinstance(item.details, EMagazineDetails):
            raise InvalidArgumentError(f"Item {item_id} is a {item.item_type}, not an E-Magazine")
        return item.details

    # Lifecycle

    def add_item(self, item: Optional[LendableItem]) -> int:
        if item is None:
            raise InvalidArgumentError("Item cannot be None")
        item_id = self.next_id
        self.next_id += 1
        item.id = item_id
        self.items[item_id] = item
        log.info("Added %s %d: %s", item.item_type, item_id, item.title)
        return item_id

    def borrow_item(self, item_id: int, borrower_name: str, duration: str) -> LendableItem:
        item = self._require(item_id)
        try:
            item.borrow(borrower_name, duration, today=self.clock())
        except CatalogError as e:
            log.debug("Borrow of item %d rejected: %s", item_id, e)
            raise
        self.borrower_history.setdefault(item.borrower_name, []).append(item)
        log.info("Item %d borrowed by %s, due %s", item_id, item.borrower_name, item.due_date)
        return item

    def return_item(self, item_id: int) -> float:
        """Check an item back in. Returns the fine charged for this loan."""
        item = self._require(item_id)
        borrower = item.borrower_name
        try:
            fine = item.return_item(self.fine_per_day, today=self.clock())
        except CatalogError as e:
            log.debug("Return of item %d rejected: %s", item_id, e)
            raise
        if fine > 0:
            self.borrower_fines[borrower] = self.borrower_fines.get(borrower, 0.0) + fine
            log.warning("Fine of %.2f charged to %s for item %d", fine, borrower, item_id)
        log.info("Item %d returned by %s", item_id, borrower)
        return fine

    def remove_item(self, item_id: int) -> bool:
        item = self.items.get(item_id)
        if item is None:
            return False
        if not item.available:
            raise InvalidStateError(f"Cannot remove item {item_id} as it is currently borrowed")
        del self.items[item_id]
        log.info("Removed item %d", item_id)
        return True

    # E-Magazine issues

    def archive_issue(self, item_id: int) -> LendableItem:
        self._require_magazine(item_id).archive_issue()
        log.info("Archived magazine item %d", item_id)
        return self.items[item_id]

    def unarchive_issue(self, item_id: int) -> LendableItem:
        self._require_magazine(item_id).unarchive_issue()
        log.info("Unarchived magazine item %d", item_id)
        return self.items[item_id]

    def add_article(self, item_id: int, title: str) -> LendableItem:
        self._require_magazine(item_id).add_article(title)
        return self.items[item_id]

    # Queries

    def get_item_by_id(self, item_id: int) -> Optional[LendableItem]:
        return self.items.get(item_id)

    def get_all_items(self) -> List[LendableItem]:
        return list(self.items.values())

    def get_total_item_count(self) -> int:
        return len(self.items)

    def search_by_title(self, title: Optional[str]) -> List[LendableItem]:
        if not title or not title.strip():
            return []
        term = title.strip().lower()
        return [i for i in self.items.values() if term in i.title.lower()]

    def search_by_author(self, author: Optional[str]) -> List[LendableItem]:
        if not author or not author.strip():
            return []
        term = author.strip().lower()
        return [i for i in self.items.values() if term in i.author.lower()]

    def get_items_by_type(self, item_type: Optional[str]) -> List[LendableItem]:
        if not item_type or not item_type.strip():
            return []
        tag = item_type.strip().lower()
        return [i for i in self.items.values() if i.item_type.lower() == tag]

    def get_available_items(self) -> List[LendableItem]:
        return [i for i in self.items.values() if i.available]

    def get_borrowed_items(self) -> List[LendableItem]:
        return [i for i in self.items.values() if not i.available]

    def is_overdue(self, item: LendableItem) -> bool:
        """Checked out and accruing a fine at the catalog's rate."""
        return not item.available and item.calculate_fine(self.fine_per_day, self.clock()) > 0

    def get_overdue_items(self) -> List[LendableItem]:
        return [i for i in self.items.values() if self.is_overdue(i)]

    def get_borrower_fine(self, borrower_name: Optional[str]) -> float:
        if not borrower_name or not borrower_name.strip():
            return 0.0
        return self.borrower_fines.get(borrower_name.strip(), 0.0)

    def get_all_fines(self) -> Dict[str, float]:
        return dict(self.borrower_fines)

    def get_borrower_history(self, borrower_name: Optional[str]) -> List[LendableItem]:
        if not borrower_name or not borrower_name.strip():
            return []
        return list(self.borrower_history.get(borrower_name.strip(), []))

    def get_library_statistics(self) -> LibraryStatistics:
        type_count: Dict[str, int] = {}
        for item in self.items.values():
            type_count[item.item_type] = type_count.get(item.item_type, 0) + 1

        available = len(self.get_available_items())
        return LibraryStatistics(
            total_items=len(self.items),
            available_items=available,
            borrowed_items=len(self.items) - available,
            overdue_items=len(self.get_overdue_items()),
            type_count=type_count,
            total_fines=sum(self.borrower_fines.values()),
            total_borrowers=len(self.borrower_history),
        )
