from typing import Sequence

from domain.errors import IllegalFetchCombinationError
from domain.models.query import (
    AssociationKind,
    FetchPlan,
    FetchStrategy,
    Page,
    ResolvedAssociation,
)


class FetchRules:
    @staticmethod
    def top_level_to_many(associations: Sequence[ResolvedAssociation]) -> list:
        return [
            a for a in associations
            if a.kind == AssociationKind.TO_MANY and not a.is_nested
        ]

    @staticmethod
    def choose_strategy(
        plan: FetchPlan,
        associations: Sequence[ResolvedAssociation],
        page: Page,
    ) -> FetchStrategy:
        """
        Pick how associations get materialized.

        Auto-selection only ever returns a legal strategy. An explicit
        strategy on the plan is validated and raises
        IllegalFetchCombinationError instead of being silently replaced.
        """
        to_many = FetchRules.top_level_to_many(associations)

        if plan.strategy is None:
            if not associations:
                return FetchStrategy.NONE
            if not to_many:
                return FetchStrategy.JOIN
            if len(to_many) == 1 and not page.requires_exact:
                return FetchStrategy.JOIN_FOLD
            return FetchStrategy.BATCH

        strategy = plan.strategy
        if strategy == FetchStrategy.NONE and associations:
            raise IllegalFetchCombinationError(
                "Strategy NONE cannot eagerly load associations: "
                + ", ".join(a.path for a in associations)
            )
        if strategy == FetchStrategy.JOIN and to_many:
            raise IllegalFetchCombinationError(
                "Strategy JOIN only covers to-one associations; "
                f"use JOIN_FOLD or BATCH for {', '.join(a.path for a in to_many)}"
            )
        if strategy == FetchStrategy.JOIN_FOLD:
            if len(to_many) > 1:
                raise IllegalFetchCombinationError(
                    "At most one to-many association may be join-fetched per query, got: "
                    + ", ".join(a.path for a in to_many)
                )
            if not to_many:
                raise IllegalFetchCombinationError(
                    "Strategy JOIN_FOLD needs exactly one to-many association"
                )
            if page.requires_exact:
                raise IllegalFetchCombinationError(
                    "Pagination with a to-many join is applied in memory; "
                    "pass Page(in_memory=True) or use BATCH for exact pagination"
                )
        return strategy
