from dataclasses import dataclass
from typing import Mapping, Type

from pydantic import BaseModel

from domain.errors import ProjectionShapeError


@dataclass(frozen=True)
class ProjectionShape:
    """
    A flat, read-only view assembled straight from a join query.

    `columns` maps every field of `model` to an attribute path on the root
    entity ("id", "member.name", "delivery.city"). Paths may only cross
    to-one relationships, so each root yields exactly one view row.
    """

    name: str
    model: Type[BaseModel]
    columns: Mapping[str, str]

    def __post_init__(self):
        fields = set(self.model.model_fields)
        missing = sorted(fields - set(self.columns))
        extra = sorted(set(self.columns) - fields)
        if missing or extra:
            raise ProjectionShapeError(
                f"Projection '{self.name}' does not match {self.model.__name__}: "
                f"missing={missing} extra={extra}"
            )

    @property
    def joins(self) -> tuple:
        """Relationship paths the projection needs, shortest first."""
        paths = []
        for target in self.columns.values():
            hops = target.split(".")[:-1]
            for depth in range(1, len(hops) + 1):
                path = ".".join(hops[:depth])
                if path not in paths:
                    paths.append(path)
        return tuple(sorted(paths, key=lambda p: p.count(".")))
