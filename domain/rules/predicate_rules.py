from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, Union

from pydantic import BaseModel, ValidationError

from domain.errors import InvalidCriteriaError
from domain.models.query import FilterField, PredicateKind, PredicateTerm

Criteria = Union[BaseModel, Mapping[str, Any], None]


class PredicateBuilder:
    """
    Turns a sparse criteria object into an ordered list of predicate terms.

    Terms follow the declaration order of `filters`, not the order of the
    criteria fields. Absent values and blank strings emit nothing. The
    caller ANDs the resulting terms together.
    """

    def __init__(self, filters: Sequence[FilterField], criteria_model: Optional[Type[BaseModel]] = None):
        names = [f.name for f in filters]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate filter names: {names}")
        self.filters = tuple(filters)
        self.criteria_model = criteria_model
        self._known = frozenset(names)

    def build(self, criteria: Criteria) -> List[PredicateTerm]:
        values = self._extract(criteria)

        terms: List[PredicateTerm] = []
        for f in self.filters:
            value = values.get(f.name)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                # A blank text filter would degrade into a match-everything wildcard
                continue
            if f.kind == PredicateKind.CONTAINS and not isinstance(value, str):
                raise InvalidCriteriaError(
                    f"Field '{f.name}' expects text, got {type(value).__name__}",
                    fields=[f.name],
                )
            terms.append(PredicateTerm(field=f.name, kind=f.kind, target=f.target, value=value))
        return terms

    def _extract(self, criteria: Criteria) -> Dict[str, Any]:
        if criteria is None:
            return {}

        if isinstance(criteria, BaseModel):
            values = {name: getattr(criteria, name) for name in type(criteria).model_fields}
            self._reject_unknown(values)
            return values

        if not isinstance(criteria, Mapping):
            raise InvalidCriteriaError(
                f"Unsupported criteria type: {type(criteria).__name__}"
            )

        self._reject_unknown(criteria)
        if self.criteria_model is None:
            return dict(criteria)

        try:
            model = self.criteria_model.model_validate(dict(criteria))
        except ValidationError as exc:
            fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
            raise InvalidCriteriaError(f"Invalid criteria: {exc}", fields=fields) from exc
        return {name: getattr(model, name) for name in self._known}

    def _reject_unknown(self, values: Mapping[str, Any]) -> None:
        unknown = sorted(set(values) - self._known)
        if unknown:
            raise InvalidCriteriaError(
                f"Unrecognized criteria field(s): {', '.join(unknown)}", fields=unknown
            )
