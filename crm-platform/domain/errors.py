"""
Domain: error taxonomy.

- ValidationError: caller input is wrong; reported synchronously, never retried.
- NotFoundError: the addressed record does not exist.
- InvalidTransitionError: a lifecycle invariant would be violated.
- AuthorizationError: session denied or capability missing.
- NotificationDispatchError: an operation committed its state change but could
  not deliver its notification (partial failure).
- StoreError: a write to the entity store failed; the caller should retry.
"""

from __future__ import annotations

from typing import Any, Optional


class CRMError(Exception):
    """Base class for all CRM errors."""


class ValidationError(CRMError, ValueError):
    pass


class AccessCodeError(ValidationError):
    """Raised when a submitted access code is missing, wrong or expired."""


class NotFoundError(CRMError, LookupError):
    def __init__(self, entity: str, record_id: str) -> None:
        super().__init__(f"{entity} not found: {record_id}")
        self.entity = entity
        self.record_id = record_id


class InvalidTransitionError(CRMError):
    """Raised when a status change is not allowed by the entity's transition map."""


class AuthorizationError(CRMError):
    pass


class NotificationDispatchError(CRMError):
    def __init__(self, message: str, notification: Optional[Any] = None) -> None:
        super().__init__(message)
        self.notification = notification


class StoreError(CRMError, RuntimeError):
    pass


__all__ = [
    "CRMError",
    "ValidationError",
    "AccessCodeError",
    "NotFoundError",
    "InvalidTransitionError",
    "AuthorizationError",
    "NotificationDispatchError",
    "StoreError",
]
