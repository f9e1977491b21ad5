"""DynamoDB manager for event template and event storage operations."""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from scheduler.models import EventTemplate, PlannedEvent, TemplateTicket

logger = logging.getLogger(__name__)


class DynamoDBManager:
    """Manager for DynamoDB operations."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit
    TEMPLATE_DATE_INDEX = 'template-date-index'

    def __init__(self, templates_table_name: str, events_table_name: str):
        """
        Initialize DynamoDB resource and table references.

        Args:
            templates_table_name: Name of the event templates table
            events_table_name: Name of the events table
        """
        self.dynamodb = boto3.resource('dynamodb')
        self.templates_table = self.dynamodb.Table(templates_table_name)
        self.events_table = self.dynamodb.Table(events_table_name)
        logger.info(
            f"Initialized DynamoDBManager for tables: "
            f"{templates_table_name}, {events_table_name}"
        )

    def get_active_templates(self) -> List[EventTemplate]:
        """
        Retrieve all active event templates using a Scan operation.

        Returns:
            List of EventTemplate objects
        """
        logger.info("Scanning templates table for active templates")
        scan_kwargs = {
            'FilterExpression': (
                Attr('is_active').eq(True) | Attr('is_active').not_exists()
            )
        }

        try:
            response = self.templates_table.scan(**scan_kwargs)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.templates_table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey'],
                    **scan_kwargs
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(f"Error scanning templates table: {e}")
            raise

        templates = []
        for item in items:
            template = self._item_to_template(item)
            if template:
                templates.append(template)

        logger.info(f"Retrieved {len(templates)} active templates")
        return templates

    def get_templates(self, template_ids: List[str]) -> List[EventTemplate]:
        """
        Retrieve specific templates by ID, whether active or not.

        Args:
            template_ids: IDs of the templates to load

        Returns:
            List of EventTemplate objects for the IDs that exist
        """
        templates = []

        for template_id in template_ids:
            try:
                response = self.templates_table.get_item(Key={'id': template_id})
            except ClientError as e:
                logger.error(f"Error loading template {template_id}: {e}")
                raise

            item = response.get('Item')
            if not item:
                logger.warning(f"Template not found: {template_id}")
                continue

            template = self._item_to_template(item)
            if template:
                templates.append(template)

        logger.info(
            f"Retrieved {len(templates)} of {len(template_ids)} requested templates"
        )
        return templates

    def event_exists(
        self, template_id: str, event_date: date, venue_id: str
    ) -> bool:
        """
        Check whether an event exists for a template, date and venue.

        Args:
            template_id: Template ID
            event_date: Event date
            venue_id: Venue ID

        Returns:
            True if a matching event is stored, False otherwise
        """
        query_kwargs = {
            'IndexName': self.TEMPLATE_DATE_INDEX,
            'KeyConditionExpression': (
                Key('template_id').eq(template_id) &
                Key('event_date').eq(event_date.isoformat())
            ),
            'FilterExpression': Attr('venue_id').eq(venue_id)
        }

        try:
            response = self.events_table.query(**query_kwargs)
            if response.get('Items'):
                return True

            # Filters apply per page, so keep paging until a match or the end
            while 'LastEvaluatedKey' in response:
                response = self.events_table.query(
                    ExclusiveStartKey=response['LastEvaluatedKey'],
                    **query_kwargs
                )
                if response.get('Items'):
                    return True

        except ClientError as e:
            logger.error(
                f"Error querying events for template {template_id} on "
                f"{event_date.isoformat()}: {e}"
            )
            raise

        return False

    def batch_write_events(self, events: List[PlannedEvent]) -> int:
        """
        Write events to DynamoDB in batches of 25 items.

        Args:
            events: List of PlannedEvent objects to write

        Returns:
            Count of successfully written events
        """
        if not events:
            return 0

        logger.info(f"Writing {len(events)} events to DynamoDB")
        success_count = 0

        for i in range(0, len(events), self.BATCH_SIZE):
            batch = events[i:i + self.BATCH_SIZE]

            try:
                with self.events_table.batch_writer() as writer:
                    for event in batch:
                        writer.put_item(Item=self._planned_event_to_item(event))
                success_count += len(batch)

            except ClientError as e:
                logger.error(
                    f"Error writing batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                continue

        logger.info(f"Successfully wrote {success_count} events")
        return success_count

    def _item_to_template(self, item: dict) -> Optional[EventTemplate]:
        """
        Convert DynamoDB item to EventTemplate object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            EventTemplate object or None if conversion fails
        """
        try:
            days_of_month = self._parse_days_of_month(item.get('day_of_month'))
            return EventTemplate(
                id=item['id'],
                recurrence_type=item.get('recurrence_type', 'none'),
                venue_id=item['venue_id'],
                default_start_time=item.get('default_start_time'),
                default_end_time=item.get('default_end_time'),
                recurring_days_of_week=[
                    int(day) for day in item.get('recurring_days_of_week') or []
                ],
                day_of_month=days_of_month[0] if days_of_month else None,
                days_of_month=days_of_month,
                recurrence_start_date=self._parse_date(
                    item.get('recurrence_start_date')
                ),
                recurrence_end_date=self._parse_date(
                    item.get('recurrence_end_date')
                ),
                template_name=item.get('template_name', ''),
                venue_name=item.get('venue_name'),
                region_id=item.get('region_id'),
                default_title_format=item.get('default_title_format'),
                default_description=item.get('default_description'),
                is_active=bool(item.get('is_active', True)),
                template_tickets=[
                    TemplateTicket(
                        seat_type=ticket['seat_type'],
                        default_price=float(ticket['default_price']),
                        default_capacity=int(ticket['default_capacity']),
                        default_description=ticket.get('default_description')
                    )
                    for ticket in item.get('template_tickets') or []
                ]
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                f"Failed to convert item {item.get('id')} to EventTemplate: {e}"
            )
            return None

    def _planned_event_to_item(self, event: PlannedEvent) -> dict:
        """
        Convert PlannedEvent object to DynamoDB item.

        Args:
            event: PlannedEvent object

        Returns:
            DynamoDB item dictionary
        """
        item = {
            'event_id': event.event_id,
            'template_id': event.template_id,
            'title': event.title,
            'event_date': event.event_date.isoformat(),
            'start_time': event.start_time.isoformat(),
            'venue_id': event.venue_id,
            'status': event.status,
            'uses_default_poster': event.uses_default_poster,
            'created_at': datetime.now().isoformat(timespec='seconds'),
            'tickets': [
                {
                    'seat_type': ticket.seat_type,
                    'price': Decimal(str(ticket.price)),
                    'capacity': ticket.capacity,
                    'sold_count': ticket.sold_count,
                    **({'description': ticket.description}
                       if ticket.description else {})
                }
                for ticket in event.tickets
            ]
        }

        # Add optional fields if present
        if event.description:
            item['description'] = event.description
        if event.end_time:
            item['end_time'] = event.end_time.isoformat()
        if event.region_id:
            item['region_id'] = event.region_id

        return item

    def _parse_date(self, value) -> Optional[date]:
        """Parse an ISO 8601 date or datetime string."""
        if not value:
            return None
        # fromisoformat only accepts a trailing Z from Python 3.11
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        return datetime.fromisoformat(value).date()

    def _parse_days_of_month(self, value) -> List[int]:
        """
        Parse the monthly days, stored either as a list or a single number.

        Duplicates are dropped and the listed order is kept.
        """
        if value is None:
            return []
        if not isinstance(value, (list, tuple, set)):
            value = [value]

        days = []
        for day in value:
            day = int(day)
            if day not in days:
                days.append(day)
        return days
