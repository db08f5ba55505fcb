"""Pain entry endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from pain_tracker.core.exceptions import BadRequestException
from pain_tracker.dependencies import CurrentUser, PainEntryServiceDep
from pain_tracker.schemas.pain_entries import (
    PainEntryCreate,
    PainEntryList,
    PainEntryResponse,
    PainTrendResponse,
    TimeRange,
    TrendPointResponse,
)
from pain_tracker.services.trends import (
    DEFAULT_TIME_RANGE,
    DateWindow,
    filter_entries,
    resolve_window,
)

router = APIRouter(prefix="/pain-entries", tags=["Pain Entries"])


def _entry_list(entries: list[PainEntryResponse]) -> PainEntryList:
    return PainEntryList(entries=entries, total=len(entries))


@router.post("", response_model=PainEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_pain_entry(
    entry_data: PainEntryCreate,
    current_user: CurrentUser,
    service: PainEntryServiceDep,
):
    """Record a pain entry for the current user."""
    return await service.create_entry(current_user.uid, entry_data)


@router.get("", response_model=PainEntryList)
async def list_pain_entries(
    current_user: CurrentUser,
    service: PainEntryServiceDep,
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
):
    """
    List the current user's entries, newest first.

    With ``from`` and ``to`` only entries observed in that inclusive window
    are returned; the two must be given together.
    """
    if (start is None) != (end is None):
        raise BadRequestException("Date filter requires both 'from' and 'to' dates")
    entries = await service.list_entries(current_user.uid)
    if start is not None and end is not None:
        entries = filter_entries(entries, DateWindow(start=start, end=end))
    return _entry_list(entries)


@router.get("/trend", response_model=PainTrendResponse)
async def get_pain_trend(
    current_user: CurrentUser,
    service: PainEntryServiceDep,
    time_range: TimeRange = Query(default=DEFAULT_TIME_RANGE, alias="range"),
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
):
    """Daily average pain level for the chart."""
    window = resolve_window(time_range, date.today(), start, end)
    points = await service.get_trend(current_user.uid, window)
    return PainTrendResponse(
        range=time_range,
        start=window.start,
        end=window.end,
        points=[
            TrendPointResponse(date=p.date, label=p.label, pain_level=p.pain_level)
            for p in points
        ],
    )


@router.delete("/{entry_id}", response_model=PainEntryList)
async def delete_pain_entry(
    entry_id: str,
    current_user: CurrentUser,
    service: PainEntryServiceDep,
):
    """Delete one of the current user's entries and return the refetched list."""
    return _entry_list(await service.delete_entry(current_user.uid, entry_id))
