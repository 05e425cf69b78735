from fastapi import APIRouter, Depends, Query
import logging

from ..dependencies import get_ledger
from ..ledger import Ledger
from ..models.event_models import EventListResponse

router = APIRouter(
    prefix="/events",
    tags=["Ledger Events"],
)

logger = logging.getLogger(__name__)


@router.get("", response_model=EventListResponse)
def list_events(
    since: int = Query(0, ge=0, description="Return events with an id greater than this."),
    name: str | None = Query(None, description="Only return events with this name, e.g. 'RecipientPaid'."),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Event feed for indexers and the UI. Poll with `since` set to the last
    `event_id` seen.
    """
    events = ledger.events(since=since, name=name)
    last_event_id = events[-1].event_id if events else since
    logger.debug(f"Returning {len(events)} events since {since}")
    return EventListResponse(events=events, last_event_id=last_event_id)
