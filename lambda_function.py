"""AWS Lambda handler for generating events from recurring templates."""
import json
import logging
import os
import time
from datetime import date, datetime, timedelta
from typing import Dict, Any, List, Optional

from notifier.revalidation_client import RevalidationClient
from scheduler.event_generator import EventGenerator
from scheduler.models import PlannedEvent
from storage.dynamodb_manager import DynamoDBManager


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def parse_request(event: Dict[str, Any], default_days: int) -> Dict[str, Any]:
    """
    Read generation options from the invocation payload.

    Args:
        event: Invocation payload (EventBridge event or manual invocation)
        default_days: Look-ahead window when no range is given

    Returns:
        Dict with start_date, end_date, template_ids, preview_only
        and custom_dates

    Raises:
        ValueError: If a date, the day count or a flag is malformed
    """
    event = event or {}
    days = int(event.get('days', default_days))
    if days < 0:
        raise ValueError(f"days must not be negative: {days}")

    start_date = _parse_iso_date(event.get('start_date')) or datetime.now().date()
    end_date = (
        _parse_iso_date(event.get('end_date')) or
        start_date + timedelta(days=days)
    )

    template_ids = event.get('template_ids') or []
    if not isinstance(template_ids, list):
        raise ValueError("template_ids must be a list")

    preview_only = event.get('preview_only', False)
    if not isinstance(preview_only, bool):
        raise ValueError("preview_only must be a boolean")

    return {
        'start_date': start_date,
        'end_date': end_date,
        'template_ids': template_ids,
        'preview_only': preview_only,
        'custom_dates': [
            _parse_iso_date(value) for value in event.get('custom_dates') or []
            if value
        ]
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for event generation.

    Args:
        event: EventBridge event payload, optionally with generation options
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    templates_table_name = os.environ.get('TEMPLATES_TABLE_NAME', 'event-templates')
    events_table_name = os.environ.get('EVENTS_TABLE_NAME', 'events')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    look_ahead_days = int(os.environ.get('LOOK_AHEAD_DAYS', '30'))
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    revalidate_url = os.environ.get('REVALIDATE_URL')
    revalidate_tag = os.environ.get('REVALIDATE_TAG', 'events')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        options = parse_request(event, look_ahead_days)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid generation request: {e}")
        return {
            'statusCode': 400,
            'body': json.dumps({
                'message': 'Invalid generation request',
                'error': str(e)
            })
        }

    logger.info(
        f"Lambda execution started",
        extra={
            'templates_table_name': templates_table_name,
            'events_table_name': events_table_name,
            'start_date': options['start_date'].isoformat(),
            'end_date': options['end_date'].isoformat(),
            'preview_only': options['preview_only']
        }
    )

    try:
        dynamodb_manager = DynamoDBManager(
            templates_table_name=templates_table_name,
            events_table_name=events_table_name
        )
        generator = EventGenerator()

        # Load templates with error handling
        try:
            logger.info("Loading event templates")
            if options['template_ids']:
                templates = dynamodb_manager.get_templates(options['template_ids'])
            else:
                templates = dynamodb_manager.get_active_templates()
            logger.info(f"Found {len(templates)} templates")
        except Exception as e:
            logger.error(
                f"Failed to load event templates: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response(
                'Failed to load event templates', e, start_time
            )

        logger.info("Generating events from templates")
        result = generator.generate(
            templates,
            options['start_date'],
            options['end_date'],
            event_lookup=dynamodb_manager,
            custom_dates=options['custom_dates']
        )
        errors = list(result.errors)

        created_count = 0
        if not options['preview_only'] and result.events:
            try:
                logger.info("Writing new events to DynamoDB")
                created_count = dynamodb_manager.batch_write_events(result.events)
            except Exception as e:
                logger.error(
                    f"Error writing events to DynamoDB: {str(e)}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
                return _error_response(
                    'Failed to write events to DynamoDB', e, start_time
                )

            if created_count and revalidate_url:
                try:
                    RevalidationClient(
                        revalidate_url,
                        tag=revalidate_tag,
                        timeout=timeout_seconds
                    ).revalidate()
                except Exception as e:
                    error_msg = f"Cache revalidation failed: {e}"
                    logger.warning(error_msg)
                    errors.append(error_msg)

        duration = time.time() - start_time

        logger.info(
            f"Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'templates_processed': result.templates,
                'events_planned': len(result.events),
                'events_created': created_count,
                'errors': errors
            }
        )

        body = {
            'message': (
                'Preview generated successfully' if options['preview_only']
                else 'Generation completed successfully'
            ),
            'statistics': {
                'templates_processed': result.templates,
                'events_planned': len(result.events),
                'events_created': created_count,
                'skipped_existing': result.skipped_existing,
                'skipped_missing_start_time': result.skipped_missing_start_time,
                'duration_seconds': round(duration, 2)
            },
            'errors': errors
        }
        if options['preview_only']:
            body['events'] = _summarize_events(result.events)

        return {
            'statusCode': 200,
            'body': json.dumps(body)
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return _error_response('Generation failed', e, start_time)


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def _summarize_events(events: List[PlannedEvent]) -> List[Dict[str, Any]]:
    return [
        {
            'event_id': event.event_id,
            'template_id': event.template_id,
            'title': event.title,
            'event_date': event.event_date.isoformat(),
            'start_time': event.start_time.isoformat(),
            'end_time': event.end_time.isoformat() if event.end_time else None,
            'venue_id': event.venue_id,
            'tickets': len(event.tickets)
        }
        for event in events
    ]


def _parse_iso_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return datetime.strptime(value, '%Y-%m-%d').date()
