"""Storage-agnostic domain rules: hierarchy, aggregates, deployment lifecycle."""

from domain.core.aggregation import (
    StructureAggregates,
    aggregate_by_structure,
    compute_aggregates,
    validate_rollup_patch,
)
from domain.core.deployment import (
    DeploymentReceipt,
    DeploymentStatus,
    deployed_patch,
    deploying_patch,
    failed_patch,
    initial_status,
    invariant_violations,
)
from domain.core.errors import (
    AuthorizationDenied,
    DomainError,
    InvalidHierarchy,
    InvalidRole,
    InvalidTransition,
    NotFound,
    StorageFailure,
    ValidationError,
)
from domain.core.hierarchy import HierarchyNode, assert_acyclic, find_orphans, level_for_parent, level_mismatches
from domain.core.minting import MintingProgress, minting_progress

__all__ = [
    "StructureAggregates",
    "aggregate_by_structure",
    "compute_aggregates",
    "validate_rollup_patch",
    "DeploymentReceipt",
    "DeploymentStatus",
    "deployed_patch",
    "deploying_patch",
    "failed_patch",
    "initial_status",
    "invariant_violations",
    "AuthorizationDenied",
    "DomainError",
    "InvalidHierarchy",
    "InvalidRole",
    "InvalidTransition",
    "NotFound",
    "StorageFailure",
    "ValidationError",
    "HierarchyNode",
    "assert_acyclic",
    "find_orphans",
    "level_for_parent",
    "level_mismatches",
    "MintingProgress",
    "minting_progress",
]
