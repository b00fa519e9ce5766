"""
Base class for sparse partial-update requests.

A field is "absent" unless the client sent it; an explicit null is a request
to clear the column. Pydantic tracks which fields were sent in
`model_fields_set`, which is what `changes()` reads.
"""

from typing import Any
from pydantic import BaseModel


class Patch(BaseModel):
    model_config = {"extra": "forbid"}

    def changes(self) -> dict[str, Any]:
        """Only the fields present in the request, explicit nulls included."""
        return self.model_dump(exclude_unset=True)
