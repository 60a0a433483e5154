"""
Domain exceptions raised by the services and translated to HTTP responses
by the handlers registered in main.py.
"""

from typing import Any


class NotFoundError(LookupError):
    """The targeted entity does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class ReferenceIntegrityError(NotFoundError):
    """A write references an entity that does not exist or belongs elsewhere."""

    def __init__(self, entity: str, entity_id: Any, detail: str = ""):
        super().__init__(entity, entity_id)
        if detail:
            self.args = (f"{self.args[0]}: {detail}",)


class LLMServiceError(RuntimeError):
    """The completion provider failed or returned something unusable."""
