"""Base Pydantic schemas with strict validation."""
from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Base model that forbids extra fields.

    All outgoing snapshots inherit from this class so a snapshot written by
    one version of the engine cannot silently carry unknown fields into
    another.

    Usage:
        class MySnapshot(StrictBaseModel):
            field: str
    """

    model_config = ConfigDict(extra="forbid")
