"""
Structured logging for ledger operations.
Engine transitions, store writes and failures all go through the global logger.
"""

import logging
from typing import Any, Dict


class StructuredLogger:
    """Structured logger for provenance engine and record store operations."""

    def __init__(self, name: str = "provledger"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status == "failed":
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_record_operation(self, operation: str, record_id: str, record_type: str = None, status: str = "success"):
        """Log a create/update/read on a single record."""
        details = {"record_id": record_id}
        if record_type is not None:
            details["type"] = record_type

        self.log_operation(f"record.{operation}", status, details)

    def log_link(self, activity_id: str, entity_id: str, agent_id: str, status: str = "success"):
        """Log an activity linking transition."""
        details = {
            "activity_id": activity_id,
            "wasGeneratedBy": entity_id,
            "wasAssociatedWith": agent_id
        }
        self.log_operation("record.link", status, details)

    def log_store_write(self, key: str, version: int, provider: str):
        """Log a committed version at debug level."""
        self.logger.debug(f"Store write: key={key}, version={version}, provider={provider}")

    def log_failure(self, operation: str, error: Exception):
        """Log a typed failure returned to the caller."""
        details = {
            "error_type": getattr(error, "code", error.__class__.__name__),
            "message": str(error)[:200]
        }
        record_id = getattr(error, "record_id", None)
        if record_id:
            details["record_id"] = record_id

        self.log_operation(operation, "failed", details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
