"""
Base record model for the Transactional Record Store.

Every stored entity is a flat, frozen Pydantic model with an optional integer
`id` (unset until the repository creates it) plus named scalar fields. Concrete
record types declare their table name and the short `kind` used by the CLI and
request handlers.
"""
from __future__ import annotations

from typing import Annotated, Any, ClassVar, Dict, List, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from record_store.errors import ValidationError

R = TypeVar("R", bound="Record")

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_NUMERIC_TYPES = (int, float)


def _describe(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<record>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def to_validation_error(record_type: Type["Record"], exc: pydantic.ValidationError) -> ValidationError:
    """Translate a Pydantic error into the store's own ValidationError."""
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return ValidationError(f"invalid {record_type.__name__}: {_describe(exc)}", details=details)


class Record(BaseModel):
    """
    Flat, identifiable unit of persisted data.
    """

    table_name: ClassVar[str] = ""
    kind: ClassVar[str] = ""

    id: Optional[int] = Field(None, description="Store-assigned identifier; None until created.")

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    @classmethod
    def build(cls: Type[R], **fields: Any) -> R:
        """
        Construct a record, raising the store's ValidationError on bad input.
        """
        try:
            return cls(**fields)
        except pydantic.ValidationError as exc:
            raise to_validation_error(cls, exc) from exc

    @classmethod
    def from_row(cls: Type[R], row: Mapping[str, Any]) -> R:
        """Rebuild a record from a database row mapping."""
        return cls.build(**dict(row))

    @classmethod
    def field_names(cls) -> List[str]:
        """Names of the data fields, excluding the identifier."""
        return [name for name in cls.model_fields if name != "id"]

    @classmethod
    def field_type(cls, name: str) -> type:
        if name == "id":
            return int
        if name not in cls.model_fields:
            raise ValidationError(f"{cls.__name__} has no field '{name}'")
        return cls.model_fields[name].annotation  # type: ignore[return-value]

    @classmethod
    def is_numeric_field(cls, name: str) -> bool:
        field_type = cls.field_type(name)
        return field_type in _NUMERIC_TYPES

    def with_id(self: R, record_id: int) -> R:
        return self.model_copy(update={"id": record_id})

    def values(self) -> Dict[str, Any]:
        """Field values without the identifier, in declaration order."""
        return {name: getattr(self, name) for name in self.field_names()}

    def revalidate(self: R) -> R:
        """
        Re-run validation on this instance's field values.

        Guards against records assembled with `model_construct`, which skips
        validation and may omit required fields.
        """
        raw = {name: self.__dict__[name] for name in self.field_names() if name in self.__dict__}
        raw["id"] = self.__dict__.get("id")
        try:
            return type(self).model_validate(raw)
        except pydantic.ValidationError as exc:
            raise to_validation_error(type(self), exc) from exc


__all__ = ["Record", "NonBlank", "to_validation_error"]
