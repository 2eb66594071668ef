"""Declarative aggregation pipelines over document collections.

A pipeline starts from one collection and runs an ordered list of stages
over plain dict rows: filter (``Match``), join (``Lookup``), flatten
(``Unwind``), group (``Group``), computed fields (``AddFields``), ordering
(``Sort``) and reshape (``Project``). Joins always compare keys through
``coerce_key`` on both sides, so an id stored as ``5`` in one collection
matches ``"5"`` in another.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from app.core.exceptions import AppError, PipelineError
from app.utils.coercion import coerce_key
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

Row = Dict[str, Any]
Loader = Callable[[], Awaitable[Sequence[Any]]]
Accumulator = Callable[[List[Row]], Any]


def to_row(item: Any) -> Row:
    if isinstance(item, BaseModel):
        return item.model_dump()
    if isinstance(item, Mapping):
        return dict(item)
    raise TypeError(f"Cannot use {type(item).__name__} as a pipeline row")


def get_path(row: Mapping[str, Any], path: str) -> Any:
    """Read a dotted path such as ``client.name``; missing segments give None."""
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


class Stage(ABC):
    """A single pipeline step transforming a list of rows."""

    name: str = "stage"

    @abstractmethod
    async def apply(self, rows: List[Row]) -> List[Row]:
        """Transform the incoming rows."""
        pass


class Match(Stage):
    name = "match"

    def __init__(self, predicate: Callable[[Row], bool]):
        self.predicate = predicate

    async def apply(self, rows: List[Row]) -> List[Row]:
        return [row for row in rows if self.predicate(row)]


class Lookup(Stage):
    """Left join: attach the list of foreign rows whose key equals the local key.

    Args:
        source: Loader returning the foreign collection
        local_field: Path of the join key on the incoming rows
        foreign_field: Path of the join key on the foreign rows
        as_field: Field receiving the matched rows
        where: Optional filter applied to foreign rows before joining
        project: Optional reshape applied to each matched foreign row
    """

    name = "lookup"

    def __init__(
        self,
        source: Loader,
        local_field: str,
        foreign_field: str,
        as_field: str,
        where: Optional[Callable[[Row], bool]] = None,
        project: Optional[Callable[[Row], Any]] = None,
    ):
        self.source = source
        self.local_field = local_field
        self.foreign_field = foreign_field
        self.as_field = as_field
        self.where = where
        self.project = project

    async def apply(self, rows: List[Row]) -> List[Row]:
        index: Dict[str, List[Row]] = {}
        for item in await self.source():
            foreign = to_row(item)
            if self.where is not None and not self.where(foreign):
                continue
            key = coerce_key(get_path(foreign, self.foreign_field))
            if key is None:
                continue
            index.setdefault(key, []).append(foreign)

        joined = []
        for row in rows:
            key = coerce_key(get_path(row, self.local_field))
            matches = index.get(key, []) if key is not None else []
            if self.project is not None:
                matches = [self.project(match) for match in matches]
            joined.append({**row, self.as_field: list(matches)})
        return joined


class Unwind(Stage):
    """Emit one row per element of a list field; rows with an empty list are dropped."""

    name = "unwind"

    def __init__(self, field: str):
        self.field = field

    async def apply(self, rows: List[Row]) -> List[Row]:
        flattened = []
        for row in rows:
            for value in row.get(self.field) or []:
                flattened.append({**row, self.field: value})
        return flattened


class Group(Stage):
    """Group rows by a key path; groups keep the order of their first row."""

    name = "group"

    def __init__(self, by: str, fields: Dict[str, Accumulator]):
        self.by = by
        self.fields = fields

    async def apply(self, rows: List[Row]) -> List[Row]:
        groups: Dict[Optional[str], List[Row]] = {}
        for row in rows:
            groups.setdefault(coerce_key(get_path(row, self.by)), []).append(row)
        return [
            {"_id": key, **{name: accumulate(members) for name, accumulate in self.fields.items()}}
            for key, members in groups.items()
        ]


class AddFields(Stage):
    name = "add_fields"

    def __init__(self, fields: Dict[str, Callable[[Row], Any]]):
        self.fields = fields

    async def apply(self, rows: List[Row]) -> List[Row]:
        return [{**row, **{name: compute(row) for name, compute in self.fields.items()}} for row in rows]


class Sort(Stage):
    """Stable sort by a key function."""

    name = "sort"

    def __init__(self, key: Callable[[Row], Any], reverse: bool = False):
        self.key = key
        self.reverse = reverse

    async def apply(self, rows: List[Row]) -> List[Row]:
        return sorted(rows, key=self.key, reverse=self.reverse)


class Project(Stage):
    """Reshape rows; a string value is a source path, a callable computes the field."""

    name = "project"

    def __init__(self, fields: Dict[str, Union[str, Callable[[Row], Any]]]):
        self.fields = fields

    async def apply(self, rows: List[Row]) -> List[Row]:
        return [
            {
                name: get_path(row, source) if isinstance(source, str) else source(row)
                for name, source in self.fields.items()
            }
            for row in rows
        ]


def first(path: str) -> Accumulator:
    return lambda rows: get_path(rows[0], path) if rows else None


def count() -> Accumulator:
    return len


def sum_of(path: str) -> Accumulator:
    def accumulate(rows: List[Row]) -> Decimal:
        total = Decimal("0")
        for row in rows:
            value = get_path(row, path)
            if value is not None:
                total += Decimal(str(value))
        return total
    return accumulate


class Pipeline:
    """An ordered list of stages run against a source collection."""

    def __init__(self, name: str, source: Loader, stages: Sequence[Stage]):
        self.name = name
        self.source = source
        self.stages = list(stages)

    async def run(self) -> List[Row]:
        """Run every stage in order.

        Returns:
            The reshaped rows

        Raises:
            AppError: Store errors raised while loading are passed through
            PipelineError: If a stage fails on the data
        """
        rows = [to_row(item) for item in await self.source()]
        LOGGER.debug(f"Pipeline {self.name} loaded {len(rows)} rows")

        for position, stage in enumerate(self.stages):
            try:
                rows = await stage.apply(rows)
            except AppError:
                raise
            except Exception as e:
                LOGGER.error(
                    f"Pipeline {self.name} failed at stage {position} ({stage.name})",
                    exc_info=True,
                    extra={"pipeline": self.name, "stage": stage.name},
                )
                raise PipelineError(
                    f"Pipeline {self.name} failed at stage {stage.name}: {str(e)}",
                    stage=stage.name,
                    original_error=e,
                )
            LOGGER.debug(f"Pipeline {self.name} stage {stage.name} -> {len(rows)} rows")

        return rows
