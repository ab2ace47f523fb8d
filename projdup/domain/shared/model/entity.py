from pydantic import BaseModel


class Entity(BaseModel):
    """Base class for objects with identity."""
