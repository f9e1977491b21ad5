"""Data models for recurring event scheduling."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class RecurrenceType(str, Enum):
    """Recurrence rules an event template can carry."""
    NONE = 'none'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'


@dataclass
class TemplateTicket:
    """Default ticket type copied onto every generated event."""
    seat_type: str
    default_price: float
    default_capacity: int
    default_description: Optional[str] = None


@dataclass
class EventTemplate:
    """Event template with its recurrence settings."""
    id: str
    recurrence_type: str
    venue_id: str
    default_start_time: Optional[str]
    default_end_time: Optional[str] = None
    recurring_days_of_week: List[int] = field(default_factory=list)
    day_of_month: Optional[int] = None
    days_of_month: List[int] = field(default_factory=list)
    recurrence_start_date: Optional[date] = None
    recurrence_end_date: Optional[date] = None
    template_name: str = ''
    venue_name: Optional[str] = None
    region_id: Optional[str] = None
    default_title_format: Optional[str] = None
    default_description: Optional[str] = None
    is_active: bool = True
    template_tickets: List[TemplateTicket] = field(default_factory=list)


@dataclass(frozen=True)
class Occurrence:
    """One concrete calendar instantiation of a template."""
    date: date
    start_time: Optional[datetime]
    end_time: Optional[datetime]


@dataclass
class PlannedTicket:
    """Ticket type for a planned event."""
    seat_type: str
    price: float
    capacity: int
    description: Optional[str]
    sold_count: int = 0


@dataclass
class PlannedEvent:
    """New event ready to be persisted."""
    event_id: str
    template_id: str
    title: str
    description: Optional[str]
    event_date: date
    start_time: datetime
    end_time: Optional[datetime]
    venue_id: str
    region_id: Optional[str]
    status: str = 'SCHEDULED'
    uses_default_poster: bool = True
    tickets: List[PlannedTicket] = field(default_factory=list)


@dataclass
class GenerationResult:
    """Result of a generation run."""
    templates: int
    events: List[PlannedEvent]
    skipped_existing: int
    skipped_missing_start_time: int
    errors: list[str]
