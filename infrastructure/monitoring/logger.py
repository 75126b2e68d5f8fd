import json
import logging
import sys
import traceback
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

PROVIDER_LOGGER_NAME = 'fxquotes.providers'


class CustomJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_data'):
            log_entry['data'] = record.extra_data

        return json.dumps(log_entry, ensure_ascii=False, cls=CustomJSONEncoder)


class AppLogger:
    """
    Centralized logging configuration for the application.
    """
    def __init__(self,
                 log_directory: str = 'logs',
                 console_level: str = 'INFO',
                 file_level: str = 'DEBUG',
                 log_to_file: bool = True,
                 max_file_size: int = 10 * 1024 * 1024,
                 backup_count: int = 5):
        self.log_directory = Path(log_directory)
        self.console_level = getattr(logging, console_level.upper())
        self.file_level = getattr(logging, file_level.upper())
        self.log_to_file = log_to_file
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        if self.log_to_file:
            self.log_directory.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    def _setup_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.DEBUG)

        logging.getLogger('httpx').setLevel(logging.WARNING)
        logging.getLogger('httpcore').setLevel(logging.WARNING)

        self._setup_console_handler(root_logger)
        if self.log_to_file:
            self._setup_file_handler(root_logger, 'system', 'app.log', self.file_level)
            self._setup_file_handler(root_logger, 'errors', 'errors.log', logging.WARNING)
        self._setup_provider_log_handler()

    def _setup_console_handler(self, logger: logging.Logger) -> None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.console_level)
        console_format = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
        console_handler.setFormatter(logging.Formatter(console_format, datefmt='%H:%M:%S'))
        logger.addHandler(console_handler)

    def _setup_file_handler(self, logger: logging.Logger, folder: str, filename: str, level: int) -> None:
        log_dir = self.log_directory / folder
        log_dir.mkdir(exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    def _setup_provider_log_handler(self) -> None:
        provider_logger = logging.getLogger(PROVIDER_LOGGER_NAME)
        provider_logger.handlers.clear()
        provider_logger.propagate = False

        if self.log_to_file:
            self._setup_file_handler(provider_logger, 'providers', 'provider_calls.log', logging.DEBUG)

        # Also add console handler for immediate feedback
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.console_level)
        console_format = '%(asctime)s | PROVIDER | %(levelname)-8s | %(message)s'
        console_handler.setFormatter(logging.Formatter(console_format, datefmt='%H:%M:%S'))
        provider_logger.addHandler(console_handler)


class LogLevel(Enum):
    DEBUG = 'DEBUG'
    INFO = 'INFO'
    WARNING = 'WARNING'
    ERROR = 'ERROR'
    CRITICAL = 'CRITICAL'


class EventType(Enum):
    PROVIDER_CALL = 'provider_call'
    CIRCUIT_BREAKER = 'circuit_breaker'
    QUOTE_ROUND = 'quote_round'
    STATISTICS = 'statistics'
    HEALTH_CHECK = 'health_check'
    ADMIN_ACTION = 'admin_action'
    USER_REQUEST = 'user_request'
    SERVICE_LIFECYCLE = 'service_lifecycle'


@dataclass
class LogEvent:
    event_type: EventType
    level: LogLevel
    message: str
    timestamp: datetime
    duration_ms: float | None = None
    request_context: dict[str, Any] | None = None
    provider_context: dict[str, Any] | None = None
    performance_context: dict[str, Any] | None = None
    error_context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        data['event_type'] = self.event_type.value
        data['level'] = self.level.value
        return data


class ProductionLogger:
    def __init__(self):
        self.system_logger = logging.getLogger('fxquotes')
        self.provider_logger = logging.getLogger(PROVIDER_LOGGER_NAME)

    def log_event(self, event: LogEvent):
        if event.event_type in (EventType.PROVIDER_CALL, EventType.CIRCUIT_BREAKER):
            logger = self.provider_logger
        else:
            logger = self.system_logger

        level_map = {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.CRITICAL: logging.CRITICAL,
        }
        logger.log(level_map.get(event.level, logging.INFO), event.message,
                   extra={'extra_data': event.to_dict()})

    def log_provider_call(self, provider_name: str, success: bool, elapsed_ms: float,
                          attempt: int = 1, error_kind: str | None = None,
                          error_message: str | None = None, quote_data: dict[str, Any] | None = None):
        event = LogEvent(
            event_type=EventType.PROVIDER_CALL,
            level=LogLevel.DEBUG if success else LogLevel.WARNING,
            message=f"Quote call to {provider_name} (attempt {attempt}): {'SUCCESS' if success else 'FAILED'}",
            timestamp=datetime.now(UTC),
            duration_ms=elapsed_ms,
            provider_context={
                'provider': provider_name,
                'attempt': attempt,
                'success': success,
                'quote_data': quote_data,
            },
            error_context={'error_kind': error_kind, 'error_message': error_message} if error_kind else None
        )
        self.log_event(event)

    def log_circuit_breaker_event(self, provider_name: str, old_state: str,
                                  new_state: str, failure_count: int, reason: str):
        event = LogEvent(
            event_type=EventType.CIRCUIT_BREAKER,
            level=LogLevel.WARNING if new_state == 'OPEN' else LogLevel.INFO,
            message=f'Circuit breaker {provider_name}: {old_state} -> {new_state} ({reason})',
            timestamp=datetime.now(UTC),
            provider_context={
                'provider': provider_name,
                'old_state': old_state,
                'new_state': new_state,
                'failure_count': failure_count,
                'reason': reason
            }
        )
        self.log_event(event)

    def log_quote_round(self, source: str, target: str, amount: Decimal, best_provider: str | None,
                        successful: int, total: int, total_duration_ms: float,
                        failures: dict[str, str] | None = None):
        if best_provider:
            message = f'Quote round {source}->{target}: best offer from {best_provider} ({successful}/{total} succeeded)'
        else:
            message = f'Quote round {source}->{target}: all {total} providers failed'

        event = LogEvent(
            event_type=EventType.QUOTE_ROUND,
            level=LogLevel.INFO if best_provider else LogLevel.ERROR,
            message=message,
            timestamp=datetime.now(UTC),
            duration_ms=total_duration_ms,
            request_context={
                'source_currency': source,
                'target_currency': target,
                'amount': amount,
            },
            provider_context={
                'best_provider': best_provider,
                'successful_providers': successful,
                'total_providers': total,
            },
            performance_context={'total_duration_ms': total_duration_ms},
            error_context={'failures': failures} if failures else None
        )
        self.log_event(event)

    def log_health_probe(self, results: dict[str, bool], duration_ms: float):
        unhealthy = [name for name, healthy in results.items() if not healthy]
        event = LogEvent(
            event_type=EventType.HEALTH_CHECK,
            level=LogLevel.WARNING if unhealthy else LogLevel.INFO,
            message=f'Health probe: {len(results) - len(unhealthy)}/{len(results)} providers healthy',
            timestamp=datetime.now(UTC),
            duration_ms=duration_ms,
            provider_context={'results': results, 'unhealthy': unhealthy}
        )
        self.log_event(event)

    def log_statistics_reset(self, total_requests: int, last_reset: datetime):
        event = LogEvent(
            event_type=EventType.STATISTICS,
            level=LogLevel.INFO,
            message=f'Statistics reset after {total_requests} rounds',
            timestamp=datetime.now(UTC),
            request_context={'discarded_rounds': total_requests, 'last_reset': last_reset}
        )
        self.log_event(event)

    def log_service_lifecycle(self, phase: str, details: dict[str, Any] | None = None):
        event = LogEvent(
            event_type=EventType.SERVICE_LIFECYCLE,
            level=LogLevel.INFO,
            message=f'Service {phase}',
            timestamp=datetime.now(UTC),
            request_context=details
        )
        self.log_event(event)

    def log_admin_action(self, action: str, details: dict[str, Any], success: bool = True):
        event = LogEvent(
            event_type=EventType.ADMIN_ACTION,
            level=LogLevel.INFO if success else LogLevel.WARNING,
            message=f"Admin action {action}: {'SUCCESS' if success else 'REJECTED'}",
            timestamp=datetime.now(UTC),
            request_context=details
        )
        self.log_event(event)

    def log_user_request(self, endpoint: str, request_data: dict[str, Any],
                         success: bool, response_time_ms: float,
                         error_message: str | None = None):
        event = LogEvent(
            event_type=EventType.USER_REQUEST,
            level=LogLevel.INFO if success else LogLevel.ERROR,
            message=f"User request to {endpoint}: {'SUCCESS' if success else 'FAILED'}",
            timestamp=datetime.now(UTC),
            duration_ms=response_time_ms,
            request_context={
                'endpoint': endpoint,
                'request_data': request_data,
                'success': success
            },
            performance_context={'response_time_ms': response_time_ms},
            error_context={'error_message': error_message} if error_message else None
        )
        self.log_event(event)


# Global logger instances
app_logger: AppLogger | None = None
production_logger: ProductionLogger | None = None


def setup_logging(log_directory: str = 'logs', console_level: str = 'INFO',
                  file_level: str = 'DEBUG', log_to_file: bool = True) -> AppLogger:
    global app_logger
    app_logger = AppLogger(
        log_directory=log_directory,
        console_level=console_level,
        file_level=file_level,
        log_to_file=log_to_file,
    )
    return app_logger


def get_production_logger() -> ProductionLogger:
    global production_logger
    if production_logger is None:
        production_logger = ProductionLogger()
    return production_logger
