"""Shared pydantic base for camelCase wire models."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model whose JSON keys are camelCase while attributes stay snake_case.

    The embedded collector and the dashboard both speak camelCase, so every
    record that crosses the wire or the persistence boundary derives from this.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
