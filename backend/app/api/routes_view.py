from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.app.api.dependencies import get_engine, get_view
from backend.app.api.routes_files import to_response
from backend.app.services.progress.tracker import LifecycleEngine
from backend.app.services.view.projection import SortKey, ViewProjection

router = APIRouter(tags=["View"])


class SearchBody(BaseModel):
    term: str = ""


class SortBody(BaseModel):
    key: SortKey


class PageBody(BaseModel):
    page: int


def render(view: ViewProjection, engine: LifecycleEngine) -> dict:
    projection = view.project(engine.snapshot())
    return {
        "items": [to_response(record) for record in projection.items],
        "page": projection.page,
        "total_pages": projection.total_pages,
        "total_items": projection.total_items,
        "search_term": view.search_term,
        "sort_key": view.sort_key.value,
        "sort_direction": view.sort_direction.value
    }


@router.get("")
async def get_view_page(
    view: ViewProjection = Depends(get_view),
    engine: LifecycleEngine = Depends(get_engine)
):
    return render(view, engine)


@router.post("/search")
async def set_search(
    body: SearchBody,
    view: ViewProjection = Depends(get_view),
    engine: LifecycleEngine = Depends(get_engine)
):
    view.set_search(body.term)
    return render(view, engine)


@router.post("/sort")
async def set_sort(
    body: SortBody,
    view: ViewProjection = Depends(get_view),
    engine: LifecycleEngine = Depends(get_engine)
):
    """Sorting by the current key again flips the direction."""
    view.set_sort(body.key)
    return render(view, engine)


@router.post("/page")
async def set_page(
    body: PageBody,
    view: ViewProjection = Depends(get_view),
    engine: LifecycleEngine = Depends(get_engine)
):
    """Pages outside 1..total_pages are ignored."""
    view.set_page(body.page, view.total_pages(engine.snapshot()))
    return render(view, engine)


@router.post("/next")
async def next_page(
    view: ViewProjection = Depends(get_view),
    engine: LifecycleEngine = Depends(get_engine)
):
    view.next_page(view.total_pages(engine.snapshot()))
    return render(view, engine)


@router.post("/previous")
async def previous_page(
    view: ViewProjection = Depends(get_view),
    engine: LifecycleEngine = Depends(get_engine)
):
    view.previous_page(view.total_pages(engine.snapshot()))
    return render(view, engine)
