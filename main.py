from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

from app_logger import get_logger
from catalog import CatalogManager
from config import FINE_PER_DAY, PORT
from errors import InvalidArgumentError, InvalidStateError, ItemNotFoundError
from schemas import (
    AudiobookDetails,
    BookDetails,
    EMagazineDetails,
    ItemDetails,
    LendableItem,
    LibraryStatistics,
    NonEmptyStr,
)

log = get_logger("api")

catalog = CatalogManager(fine_per_day=FINE_PER_DAY)


# Helpers
def raise_http(err: Exception):
    if isinstance(err, ItemNotFoundError):
        raise HTTPException(404, str(err))
    if isinstance(err, InvalidArgumentError):
        raise HTTPException(400, str(err))
    if isinstance(err, InvalidStateError):
        raise HTTPException(409, str(err))
    raise err


def to_doc(item: LendableItem) -> Dict[str, Any]:
    doc = item.model_dump(mode="json")
    doc["specific_info"] = item.specific_info()
    doc["overdue"] = catalog.is_overdue(item)
    return doc


# Request Models
class CreateItem(BaseModel):
    title: NonEmptyStr
    author: NonEmptyStr
    details: ItemDetails

    @field_validator("details")
    @classmethod
    def _fresh_issue(cls, v):
        if isinstance(v, EMagazineDetails) and (v.archived or v.articles):
            raise ValueError("New issues start unarchived with no articles")
        return v


class BorrowRequest(BaseModel):
    borrower_name: str
    duration: str = Field("14 days", description="Loan period, e.g. '7 days', '2 weeks', '1 month'")


class ArticleRequest(BaseModel):
    title: str


app = FastAPI(title="Lending Catalog API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"message": "Lending Catalog API is running"}


# Items Endpoints
@app.get("/api/items")
def list_items(
    q: Optional[str] = None,
    author: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
):
    items = catalog.get_all_items()
    if q:
        matched = {i.id for i in catalog.search_by_title(q)}
        items = [i for i in items if i.id in matched]
    if author:
        matched = {i.id for i in catalog.search_by_author(author)}
        items = [i for i in items if i.id in matched]
    if type:
        matched = {i.id for i in catalog.get_items_by_type(type)}
        items = [i for i in items if i.id in matched]
    if status:
        by_status = {
            "available": catalog.get_available_items,
            "borrowed": catalog.get_borrowed_items,
            "overdue": catalog.get_overdue_items,
        }
        if status.lower() not in by_status:
            raise HTTPException(400, f"Unknown status filter: {status}")
        matched = {i.id for i in by_status[status.lower()]()}
        items = [i for i in items if i.id in matched]
    return [to_doc(i) for i in sorted(items, key=lambda i: i.id)]


@app.post("/api/items", status_code=201)
def create_item(payload: CreateItem):
    item = LendableItem(title=payload.title, author=payload.author, details=payload.details)
    catalog.add_item(item)
    return to_doc(item)


@app.get("/api/items/{item_id}")
def get_item(item_id: int):
    item = catalog.get_item_by_id(item_id)
    if item is None:
        raise HTTPException(404, "Item not found")
    return to_doc(item)


@app.delete("/api/items/{item_id}", status_code=204)
def delete_item(item_id: int):
    try:
        removed = catalog.remove_item(item_id)
    except InvalidStateError as e:
        raise_http(e)
    if not removed:
        raise HTTPException(404, "Item not found")


# Lending Endpoints
@app.post("/api/items/{item_id}/borrow")
def borrow_item(item_id: int, payload: BorrowRequest):
    try:
        item = catalog.borrow_item(item_id, payload.borrower_name, payload.duration)
    except (InvalidArgumentError, InvalidStateError) as e:
        raise_http(e)
    return to_doc(item)


@app.post("/api/items/{item_id}/return")
def return_item(item_id: int):
    try:
        fine = catalog.return_item(item_id)
    except (InvalidArgumentError, InvalidStateError) as e:
        raise_http(e)
    return {"item": to_doc(catalog.get_item_by_id(item_id)), "fine": fine}


# E-Magazine Endpoints
@app.post("/api/items/{item_id}/archive")
def archive_issue(item_id: int):
    try:
        item = catalog.archive_issue(item_id)
    except (InvalidArgumentError, InvalidStateError) as e:
        raise_http(e)
    return to_doc(item)


@app.post("/api/items/{item_id}/unarchive")
def unarchive_issue(item_id: int):
    try:
        item = catalog.unarchive_issue(item_id)
    except (InvalidArgumentError, InvalidStateError) as e:
        raise_http(e)
    return to_doc(item)


@app.post("/api/items/{item_id}/articles", status_code=201)
def add_article(item_id: int, payload: ArticleRequest):
    try:
        item = catalog.add_article(item_id, payload.title)
    except InvalidArgumentError as e:
        raise_http(e)
    return to_doc(item)


# Borrowers Endpoints
@app.get("/api/borrowers/{name}/history")
def borrower_history(name: str):
    return [to_doc(i) for i in catalog.get_borrower_history(name)]


@app.get("/api/borrowers/{name}/fine")
def borrower_fine(name: str):
    return {"borrower": name, "fine": catalog.get_borrower_fine(name)}


@app.get("/api/fines")
def all_fines() -> Dict[str, float]:
    return catalog.get_all_fines()


# Stats endpoint
@app.get("/api/stats", response_model=LibraryStatistics)
def stats():
    return catalog.get_library_statistics()


# Schema info (useful for tooling)
@app.get("/schema")
def get_schema_info():
    return {
        "item": list(CreateItem.model_fields.keys()),
        "variants": {
            cls.model_fields["kind"].default: list(cls.model_fields.keys())
            for cls in (BookDetails, AudiobookDetails, EMagazineDetails)
        },
    }


if __name__ == "__main__":
    import uvicorn
    log.info("Starting Lending Catalog API on port %d", PORT)
    uvicorn.run(app, host="0.0.0.0", port=PORT)
