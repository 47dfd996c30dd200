"""
Standardized exception hierarchy for betterme
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class BetterMeError(Exception):
    """
    Base exception for all betterme errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging at the class's log_level

    Example:
        raise BetterMeError(
            message="Failed to save habit",
            user_id="8c1f...",
            operation="create_habit",
            context={"habit_id": "abc-123"}
        )
    """

    log_level: int = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause if self.log_level >= logging.ERROR else None
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for presentation layers"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(BetterMeError):
    """
    Raised when a habit definition or other user input fails validation

    Example:
        raise ValidationError(
            message="Experience value must be between 5 and 50",
            field="exp_value",
            value=80
        )
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Shop Gate Errors (expected, recoverable)
# ==========================================

class ShopError(BetterMeError):
    """
    Base class for shop purchase/equip refusals

    These are normal outcomes of user actions, so they log at INFO
    rather than as system errors.
    """

    log_level = logging.INFO

    def __init__(
        self,
        message: str,
        item_id: Optional[str] = None,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        self.item_id = item_id
        super().__init__(
            message=message,
            user_message=user_message or message,
            context={"item_id": item_id, **(context or {})},
            **kwargs
        )


class InsufficientFunds(ShopError):
    """Profile does not have enough coins for the item"""

    def __init__(self, item_id: str, coins: int, coin_cost: int, **kwargs):
        self.coins = coins
        self.coin_cost = coin_cost
        super().__init__(
            message=f"Item {item_id} costs {coin_cost} coins, profile has {coins}",
            item_id=item_id,
            user_message="Not enough coins!",
            context={"coins": coins, "coin_cost": coin_cost},
            **kwargs
        )


class LevelTooLow(ShopError):
    """Profile level is below the item's required level"""

    def __init__(self, item_id: str, character_level: int, required_level: int, **kwargs):
        self.character_level = character_level
        self.required_level = required_level
        super().__init__(
            message=f"Item {item_id} requires level {required_level}, profile is level {character_level}",
            item_id=item_id,
            user_message=f"You need to be level {required_level} to unlock this item!",
            context={"character_level": character_level, "required_level": required_level},
            **kwargs
        )


class NotUnlocked(ShopError):
    """Item must be unlocked before it can be equipped"""

    def __init__(self, item_id: str, **kwargs):
        super().__init__(
            message=f"Item {item_id} is not unlocked",
            item_id=item_id,
            user_message="Unlock this item in the shop before equipping it.",
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(BetterMeError):
    """
    Base class for storage collaborator failures
    """
    pass


class ConnectionError(StorageError):
    """Storage connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(StorageError):
    """Storage query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"query": query},
            **kwargs
        )


class RecordNotFoundError(StorageError):
    """Requested record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class PartialUpdateError(StorageError):
    """
    A habit completion was only partly written.

    The log insert and/or the habit update succeeded but a later write
    failed. `plan` is the CompletionPlan that was being applied; passing it
    back to ProgressionUpdater.apply_plan finishes the remaining writes.
    """

    def __init__(
        self,
        message: str,
        plan: Any,
        completed_steps: List[str],
        failed_step: str,
        **kwargs
    ):
        self.plan = plan
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        super().__init__(
            message=message,
            user_message="Your progress was only partly saved. Please retry.",
            context={"completed_steps": self.completed_steps, "failed_step": failed_step},
            **kwargs
        )


# ==========================================
# Authentication
# ==========================================

class AuthenticationError(BetterMeError):
    """Identity provider rejected the request"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str = "Authentication failed",
        user_message: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.status_code = status_code
        super().__init__(
            message=message,
            user_message=user_message or "Authentication failed. Please check your credentials.",
            context={"status_code": status_code},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> BetterMeError:
    """
    Wrap external exceptions (psycopg, httpx) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate BetterMeError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="update_profile") from e
    """
    import psycopg
    import httpx

    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # HTTP errors
    elif isinstance(error, httpx.TimeoutException):
        return ConnectionError(
            message=f"Request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return ConnectionError(
            message=f"HTTP request failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Generic fallback
    else:
        return BetterMeError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
