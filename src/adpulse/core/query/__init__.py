"""Request descriptors and upstream query construction."""

from .descriptor import (
    ALL,
    DEFAULT_STATUSES,
    AllEntities,
    EntityFilter,
    RequestDescriptor,
    SelectedEntities,
    entity_filter,
    normalize_account_id,
)
from .builder import (
    DEFAULT_FIELDS,
    DEFAULT_PAGE_SIZE,
    build_filtering,
    in_predicate,
    build_params,
    graph_url,
    insights_url,
)

__all__ = [
    # Descriptor
    "ALL",
    "DEFAULT_STATUSES",
    "AllEntities",
    "EntityFilter",
    "RequestDescriptor",
    "SelectedEntities",
    "entity_filter",
    "normalize_account_id",
    # Builder
    "DEFAULT_FIELDS",
    "DEFAULT_PAGE_SIZE",
    "build_filtering",
    "in_predicate",
    "build_params",
    "graph_url",
    "insights_url",
]
