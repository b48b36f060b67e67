"""
Centralized logging configuration for the course assistant.

This module provides a function to set up application-wide logging,
including formatting, log levels, and handlers for console and file output.
"""

import logging
import logging.handlers # Required for RotatingFileHandler
import sys # To ensure we can always output to stdout for console
import json
from typing import Optional

class StructuredLogFormatter(logging.Formatter):
    """
    Custom formatter that renders every record as a single JSON line.

    Features:
    - Includes conversation_id if present in extra fields
    - Includes state (orchestrator state name) if present in extra fields
    - Merges any `extra_fields` mapping attached to the record
    - Preserves standard log fields (timestamp, level, etc.)
    """

    def format(self, record):
        # Create base log structure
        log_data = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        # Add conversation_id if present
        if hasattr(record, 'conversation_id'):
            log_data['conversation_id'] = record.conversation_id

        # Add orchestrator state if present
        if hasattr(record, 'state'):
            log_data['state'] = record.state

        # Add any extra fields from record
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(conversation_id)s] - %(message)s'
DEFAULT_LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def get_logger(name: str, conversation_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger adapter that always carries a conversation_id field.

    Args:
        name (str): Logger name (usually __name__)
        conversation_id (Optional[str]): Conversation to bind; 'no_conversation' when omitted

    Returns:
        logging.LoggerAdapter: Adapter whose `extra` holds the conversation_id
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {
        'conversation_id': conversation_id or 'no_conversation'
    })

def setup_app_logging(config: dict = None, default_level=logging.INFO) -> None:
    """
    Set up logging for the entire application.

    Configures the root logger with a JSON console handler and, when a
    file path is configured, a rotating file handler.

    Args:
        config (dict, optional): Logging configuration. Expected keys:
                                - 'level': log level name (e.g., "DEBUG", "INFO").
                                - 'file_path': path to the log file; empty disables file logging.
                                - 'max_bytes': max size of the log file before rotation.
                                - 'backup_count': number of rotated files to keep.
                                - 'format': log format string.
                                - 'date_format': date format string.
        default_level (int, optional): Level used when the config has none.
    """
    if config is None:
        config = {}

    # Determine log level
    log_level_str = str(config.get('level', logging.getLevelName(default_level))).upper()
    numeric_log_level = getattr(logging, log_level_str, default_level)
    if not isinstance(numeric_log_level, int):
        print(f"Warning: Invalid log level string '{log_level_str}'. Using default level {logging.getLevelName(default_level)}.", file=sys.stderr)
        numeric_log_level = default_level

    log_format = config.get('format', DEFAULT_LOG_FORMAT)
    log_date_format = config.get('date_format', DEFAULT_LOG_DATE_FORMAT)

    formatter = StructuredLogFormatter(log_format, datefmt=log_date_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_log_level)

    # Remove any existing handlers
    if root_logger.hasHandlers():
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file_path = config.get('file_path')
    if log_file_path:
        try:
            max_bytes = int(config.get('max_bytes', 5*1024*1024))  # 5 MB
            backup_count = int(config.get('backup_count', 3))

            file_handler = logging.handlers.RotatingFileHandler(
                log_file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Error setting up file logging to {log_file_path}: {e}. File logging will be disabled.", file=sys.stderr)

    get_logger("LoggingConfig").info("Application logging setup complete. Level: %s", log_level_str)
