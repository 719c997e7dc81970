from typing import Optional

from pydantic import BaseModel


class CalendarEvent(BaseModel):
    id: str
    html_link: Optional[str] = None
    status: Optional[str] = None
    created: Optional[str] = None
