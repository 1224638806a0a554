"""Domain models for watcherclient."""

from watcherclient.domain.models import (
    Action,
    ActionPlan,
    Audit,
    AuditTemplate,
    AuthInfo,
    Credential,
    DataModel,
    Goal,
    ListOptions,
    Scope,
    Strategy,
)

__all__ = [
    "Action",
    "ActionPlan",
    "Audit",
    "AuditTemplate",
    "AuthInfo",
    "Credential",
    "DataModel",
    "Goal",
    "ListOptions",
    "Scope",
    "Strategy",
]
