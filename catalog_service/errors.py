"""
Request-level failures of the catalog.

Validation problems and blocked deletes are ordinary outcomes handled by the
controllers; only the conditions below leave a controller as exceptions.
They subclass the werkzeug HTTP exceptions so Flask maps them to a status.
"""
from werkzeug.exceptions import InternalServerError, NotFound


class NotFoundError(NotFound):
    """An entity-by-id lookup missed."""

    def __init__(self, kind, entity_id):
        super().__init__(description=f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class StoreError(InternalServerError):
    """The record store could not be reached or refused a write."""

    def __init__(self, description="Record store failure", original_exception=None):
        super().__init__(description=description, original_exception=original_exception)
