"""Pydantic base model for extracted data.

Records are serialized with camelCase keys, the format of the persisted
dataset, while Python code uses snake_case attribute names.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from safeplate.common.deferred_validation import (
    DeferredValidation,
)

T = TypeVar("T", bound="ScrapedData")


class ScrapedData(BaseModel):
    """Base class for extracted data with deferred validation support.

    Example:
        # Normal usage (validates immediately)
        violation = Violation(code="3-501.16", tier=Tier.CRITICAL)

        # Deferred validation
        deferred = InspectionRecord.raw(source="row 1", name="Joe's Diner")
        record = deferred.confirm()
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def raw(cls: type[T], source: str = "", **data: Any) -> DeferredValidation[T]:
        """Create a DeferredValidation wrapper with raw, unvalidated data.

        Args:
            source: Optional description of the data's origin for error reporting.
            **data: Raw field values (not validated).
        """
        return DeferredValidation(cls, source, **data)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using the persisted key names."""
        return self.model_dump(mode="json", by_alias=True)
