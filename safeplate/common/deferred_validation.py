"""Deferred validation for extracted records.

DeferredValidation holds raw field values and a Pydantic model type and only
validates when confirm() is called. The extractor assembles a record's
fields from the grid row, the revealed violations and the scorer before
confirming it.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from safeplate.common.exceptions import (
    DataFormatAssumptionException,
)

T = TypeVar("T", bound=BaseModel)


class DeferredValidation(Generic[T]):
    """Wrapper for unvalidated data that validates on confirm().

    Example:
        deferred = InspectionRecord.raw(source="row 3", name=name, ...)
        record = deferred.confirm()  # Raises if invalid
    """

    def __init__(
        self,
        model_class: type[T],
        source: str = "",
        **data: Any,
    ) -> None:
        self._model_class = model_class
        self._source = source
        self._data = data

    def confirm(self) -> T:
        """Validate the data and return the validated model instance.

        Raises:
            DataFormatAssumptionException: If validation fails.
        """
        try:
            return self._model_class.model_validate(self._data)
        except ValidationError as e:
            errors_list = [dict(err) for err in e.errors()]
            raise DataFormatAssumptionException(
                errors=errors_list,
                failed_doc=self._data,
                model_name=self._model_class.__name__,
                source=self._source,
            ) from e

    @property
    def raw_data(self) -> dict:
        return self._data.copy()

    @property
    def model_name(self) -> str:
        return self._model_class.__name__
