"""Database models and the read-only checkpoint record consumed by the map."""

import datetime
from typing import Any

import pydantic
import sqlmodel

import common.settings


class CheckpointRecord(pydantic.BaseModel):
    """One checkpoint event as delivered by the record source.

    The wire format uses the capitalized keys of the upstream table (``City``,
    ``County``, ``Date`` ...); snake_case field names are accepted as well.
    ``date`` is a ``YYYY-MM-DD`` local calendar date kept as text.
    """

    model_config = pydantic.ConfigDict(frozen=True, populate_by_name=True)

    id: str
    state: str = pydantic.Field(
        default_factory=lambda: common.settings.DEFAULT_STATE, alias='State'
    )
    county: str | None = pydantic.Field(default=None, alias='County')
    city: str | None = pydantic.Field(default=None, alias='City')
    location: str = pydantic.Field(default='', alias='Location')
    description: str = pydantic.Field(default='', alias='Description')
    date: str | None = pydantic.Field(default=None, alias='Date')
    time: str = pydantic.Field(default='', alias='Time')
    source: str = pydantic.Field(default='', alias='Source')
    mapurl: str | None = None
    created_at: str | None = None

    @pydantic.field_validator('id', mode='before')
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @pydantic.field_validator('state', mode='before')
    @classmethod
    def _default_state(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return common.settings.DEFAULT_STATE
        return value

    @pydantic.field_validator(
        'location', 'description', 'time', 'source', mode='before'
    )
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return '' if value is None else value

    def to_wire(self) -> dict[str, Any]:
        """Serialize using the upstream capitalized keys."""
        return self.model_dump(by_alias=True)


class Checkpoint(sqlmodel.SQLModel, table=True):
    """Stores one published checkpoint."""

    __tablename__ = 'checkpoints'  # type: ignore[misc]

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    state: str = sqlmodel.Field(default='CA', max_length=50, index=True)
    county: str | None = sqlmodel.Field(default=None, max_length=200)
    city: str | None = sqlmodel.Field(default=None, max_length=200)
    location: str = sqlmodel.Field(default='', max_length=500)
    description: str = sqlmodel.Field(default='')
    date: str | None = sqlmodel.Field(default=None, max_length=10, index=True)
    time: str = sqlmodel.Field(default='', max_length=100)
    source: str = sqlmodel.Field(default='', max_length=1000)
    mapurl: str | None = sqlmodel.Field(default=None, max_length=1000)
    created_at: datetime.datetime = sqlmodel.Field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC)
    )

    def to_record(self) -> CheckpointRecord:
        """Convert to the read-only record consumed by the map engine."""
        return CheckpointRecord(
            id=str(self.id),
            state=self.state,
            county=self.county,
            city=self.city,
            location=self.location,
            description=self.description,
            date=self.date,
            time=self.time,
            source=self.source,
            mapurl=self.mapurl,
            created_at=self.created_at.isoformat(),
        )


class PreviousLocation(sqlmodel.SQLModel, table=True):
    """A location where a checkpoint was held before."""

    __tablename__ = 'previous_locations'  # type: ignore[misc]

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    checkpoint_id: int = sqlmodel.Field(foreign_key='checkpoints.id', index=True)
    county: str | None = sqlmodel.Field(default=None, max_length=200)
    city: str | None = sqlmodel.Field(default=None, max_length=200)
    location: str = sqlmodel.Field(default='', max_length=500)
    mapurl: str | None = sqlmodel.Field(default=None, max_length=1000)
    created_at: datetime.datetime = sqlmodel.Field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC)
    )
