"""
campusvote exception hierarchy

Provides typed exceptions for the failure modes of the voting backend.
All custom exceptions inherit from CampusVoteError for easy catching.

Vote rejections (already voted, not active, not eligible) are NOT
exceptions: they are expected outcomes returned as VoteResult values.
Exceptions here cover infrastructure failures, missing entities and bad
administrator input.
"""

from typing import Optional, Dict, Any


class CampusVoteError(Exception):
    """Root of every error the voting backend raises on purpose

    context carries structured fields for logs and API error bodies.
    """

    _retryable: bool = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """True when repeating the same call may succeed (store outages, timeouts)"""
        return self._retryable

    def __str__(self):
        base_msg = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


# ========== Database Errors ==========


class DatabaseError(CampusVoteError):
    """Document store operation failures"""
    pass


class DatabaseConnectionError(DatabaseError):
    """Failed to reach the document store (network, pool exhausted, timeout)"""
    _retryable = True


class DataIntegrityError(DatabaseError):
    """Data integrity constraint violation

    Examples:
    - Unique key violations
    - Malformed stored documents
    """

    def __init__(self, message: str, collection: Optional[str] = None, constraint: Optional[str] = None):
        self.collection = collection
        self.constraint = constraint
        context = {}
        if collection:
            context['collection'] = collection
        if constraint:
            context['constraint'] = constraint
        super().__init__(message, context)


class DocumentConflictError(DataIntegrityError):
    """Conditional insert found an existing document under the same key"""

    def __init__(self, collection: str, doc_id: str):
        self.doc_id = doc_id
        super().__init__(
            f"Document {doc_id} already exists in {collection}",
            collection=collection,
            constraint="primary_key",
        )


# ========== Lookup Errors ==========


class NotFoundError(CampusVoteError):
    """Requested entity does not exist (or was deleted after being listed)"""

    def __init__(self, message: str, entity: Optional[str] = None, entity_id: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        context = {}
        if entity:
            context['entity'] = entity
        if entity_id:
            context['entity_id'] = entity_id
        super().__init__(message, context)


# ========== Policy Errors ==========


class ResultsNotAvailableError(CampusVoteError):
    """Voter asked for results of an item that has not closed yet"""

    def __init__(self, message: str, item_id: Optional[str] = None, status: Optional[str] = None):
        self.item_id = item_id
        self.status = status
        context = {}
        if item_id:
            context['item_id'] = item_id
        if status:
            context['status'] = status
        super().__init__(message, context)


# ========== Configuration Errors ==========


class ConfigurationError(CampusVoteError):
    """Configuration or environment errors

    Examples:
    - Missing JWT secret
    - Missing admin token
    """

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        context = {}
        if config_key:
            context['config_key'] = config_key
        super().__init__(message, context)


# ========== Validation Errors ==========


class ValidationError(CampusVoteError):
    """Administrator input validation failures

    Examples:
    - End date not after start date
    - Poll with fewer than two options
    - Missing required field
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        self.field = field
        self.value = value

        context = {}
        if field:
            context['field'] = field
        if value is not None:
            context['value'] = str(value)

        super().__init__(message, context)
