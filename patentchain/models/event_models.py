from pydantic import BaseModel, Field
from typing import Any, Dict, List


class LedgerEvent(BaseModel):
    event_id: int
    name: str = Field(..., description="Event name, e.g. 'LicensePurchased'.")
    timestamp: int
    args: Dict[str, Any] = Field({}, description="Fields needed to rebuild the affected record.")


class EventListResponse(BaseModel):
    events: List[LedgerEvent] = []
    last_event_id: int = 0
