"""Event generator for turning recurring templates into new events."""
import hashlib
import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional, Protocol

from scheduler.models import (
    EventTemplate,
    GenerationResult,
    Occurrence,
    PlannedEvent,
    PlannedTicket,
    RecurrenceType,
)
from scheduler.recurrence import expand, occurrences_for_dates
from scheduler.titles import (
    DEFAULT_TITLE_FORMAT,
    DEFAULT_VENUE_NAME,
    display_date,
    display_time,
    format_event_title,
)

logger = logging.getLogger(__name__)


class EventLookup(Protocol):
    """Store capable of telling whether an event was already created."""

    def event_exists(
        self, template_id: str, event_date: date, venue_id: str
    ) -> bool:
        ...


class EventGenerator:
    """Generator for events from recurring templates."""

    def generate(
        self,
        templates: List[EventTemplate],
        range_start: date,
        range_end: date,
        event_lookup: EventLookup,
        custom_dates: Optional[Iterable[date]] = None
    ) -> GenerationResult:
        """
        Plan new events for the given templates within a date range.

        Occurrences without a start time and occurrences that already
        exist in the store are skipped.

        Args:
            templates: Event templates to expand
            range_start: First day of the range (inclusive)
            range_end: Last day of the range (inclusive)
            event_lookup: Store used to skip already created events
            custom_dates: Explicit dates for templates without recurrence

        Returns:
            GenerationResult with the events to create
        """
        custom_dates = list(custom_dates or [])
        planned_events = []
        skipped_existing = 0
        skipped_missing_start = 0
        errors = []

        for template in templates:
            try:
                occurrences = self.occurrences_for_template(
                    template, range_start, range_end, custom_dates
                )
                logger.info(
                    f"Template '{template.template_name}': "
                    f"{len(occurrences)} potential dates"
                )

                for occurrence in occurrences:
                    if occurrence.start_time is None:
                        logger.info(
                            f"Skipping event for template "
                            f"'{template.template_name}' on "
                            f"{occurrence.date.isoformat()} - missing start time"
                        )
                        skipped_missing_start += 1
                        continue

                    if event_lookup.event_exists(
                        template.id, occurrence.date, template.venue_id
                    ):
                        logger.info(
                            f"Event already exists for template "
                            f"'{template.template_name}' on "
                            f"{occurrence.date.isoformat()}"
                        )
                        skipped_existing += 1
                        continue

                    planned_events.append(
                        self.build_event(template, occurrence)
                    )

            except Exception as e:
                error_msg = (
                    f"Failed to generate events for template "
                    f"'{template.template_name}' ({template.id}): {e}"
                )
                logger.warning(error_msg)
                errors.append(error_msg)
                continue

        logger.info(
            f"Planned {len(planned_events)} new events from "
            f"{len(templates)} templates"
        )
        return GenerationResult(
            templates=len(templates),
            events=planned_events,
            skipped_existing=skipped_existing,
            skipped_missing_start_time=skipped_missing_start,
            errors=errors
        )

    def occurrences_for_template(
        self,
        template: EventTemplate,
        range_start: date,
        range_end: date,
        custom_dates: List[date]
    ) -> List[Occurrence]:
        """
        Compute occurrences for a template.

        Templates without recurrence use the custom dates when given.
        Monthly templates listing several days are expanded once per day
        and merged by date.
        """
        if template.recurrence_type == RecurrenceType.NONE and custom_dates:
            return occurrences_for_dates(template, custom_dates)

        if (template.recurrence_type == RecurrenceType.MONTHLY and
                len(template.days_of_month) > 1):
            by_date = {}
            for day in template.days_of_month:
                single_day = replace(template, day_of_month=day)
                for occurrence in expand(single_day, range_start, range_end):
                    by_date.setdefault(occurrence.date, occurrence)
            return [by_date[day] for day in sorted(by_date)]

        return expand(template, range_start, range_end)

    def build_event(
        self, template: EventTemplate, occurrence: Occurrence
    ) -> PlannedEvent:
        """
        Build a new event for an occurrence of a template.

        Args:
            template: Source template
            occurrence: Occurrence with a start time

        Returns:
            PlannedEvent with tickets copied from the template
        """
        title = format_event_title(
            template.default_title_format or DEFAULT_TITLE_FORMAT,
            venue=template.venue_name or DEFAULT_VENUE_NAME,
            date=display_date(occurrence.date),
            time=display_time(occurrence.start_time)
        )

        tickets = [
            PlannedTicket(
                seat_type=ticket.seat_type,
                price=ticket.default_price,
                capacity=ticket.default_capacity,
                description=ticket.default_description
            )
            for ticket in template.template_tickets
        ]

        return PlannedEvent(
            event_id=self.generate_event_id(
                template_id=template.id,
                venue_id=template.venue_id,
                event_date=occurrence.date
            ),
            template_id=template.id,
            title=title,
            description=template.default_description,
            event_date=occurrence.date,
            start_time=occurrence.start_time,
            end_time=occurrence.end_time,
            venue_id=template.venue_id,
            region_id=template.region_id,
            tickets=tickets
        )

    def generate_event_id(
        self, template_id: str, venue_id: str, event_date: date
    ) -> str:
        """
        Generate a stable identifier for a template occurrence.

        Args:
            template_id: Template ID
            venue_id: Venue ID
            event_date: Occurrence date

        Returns:
            Unique event ID (SHA256 hash)
        """
        composite = f"{template_id}|{venue_id}|{event_date.isoformat()}"
        hash_obj = hashlib.sha256(composite.encode('utf-8'))
        return hash_obj.hexdigest()
