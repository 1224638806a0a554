"""Core domain models for watcherclient."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

AuthMethod = Literal[
    "password", "token", "application_credential_id", "application_credential_name"
]


class Scope(BaseModel):
    """Project or domain a token is authorized against.

    A project may be given by id, or by name together with its domain.
    A domain-scoped token sets only domain_id or domain_name.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str | None = None
    project_name: str | None = None
    project_domain_id: str | None = None
    project_domain_name: str | None = None
    domain_id: str | None = None
    domain_name: str | None = None

    def is_empty(self) -> bool:
        """True when the scope names neither a project nor a domain."""
        return not (self.project_id or self.project_name or self.domain_id or self.domain_name)


class Credential(BaseModel):
    """Immutable description of how to authenticate against Keystone.

    Exactly one authentication method is used, picked in this order when
    several are populated: password, token, application credential id,
    application credential name.
    """

    model_config = ConfigDict(frozen=True)

    auth_url: str = ""
    username: str | None = None
    user_id: str | None = None
    password: str | None = Field(default=None, repr=False)
    user_domain_id: str | None = None
    user_domain_name: str | None = None
    token: str | None = Field(default=None, repr=False)
    application_credential_id: str | None = None
    application_credential_name: str | None = None
    application_credential_secret: str | None = Field(default=None, repr=False)
    scope: Scope | None = None
    allow_reauth: bool = True
    interface: str = "public"
    region_name: str | None = None

    @property
    def auth_method(self) -> AuthMethod | None:
        """The authentication method this credential resolves to, if any."""
        if (self.username or self.user_id) and self.password:
            return "password"
        if self.token:
            return "token"
        if self.application_credential_id and self.application_credential_secret:
            return "application_credential_id"
        if self.application_credential_name and self.application_credential_secret:
            return "application_credential_name"
        return None


@dataclass(frozen=True)
class AuthInfo:
    """Read-only snapshot of an authenticator's state for diagnostics."""

    username: str | None
    user_id: str | None
    project_name: str | None
    project_id: str | None
    domain_name: str | None
    domain_id: str | None
    token_expiry: datetime | None
    is_expired: bool
    time_until_expiry: timedelta | None


# ===== Watcher API resources =====


class WatcherResource(BaseModel):
    """Base for API resources; unknown server fields are kept."""

    model_config = ConfigDict(extra="allow")


class Link(BaseModel):
    href: str
    rel: str


class Audit(WatcherResource):
    """A Watcher audit (ONESHOT or CONTINUOUS)."""

    uuid: str | None = None
    name: str | None = None
    audit_type: str = "ONESHOT"
    state: str | None = None
    goal: str | None = None
    strategy: str | None = None
    interval: int | str | None = None
    scope: list[dict[str, Any]] | None = None
    parameters: dict[str, Any] | None = None
    auto_trigger: bool = False
    next_run_time: datetime | None = None
    hostname: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    links: list[Link] | None = None


class AuditTemplate(WatcherResource):
    uuid: str | None = None
    name: str
    description: str | None = None
    goal: str | None = None
    strategy: str | None = None
    scope: list[dict[str, Any]] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    links: list[Link] | None = None


class ActionPlan(WatcherResource):
    uuid: str | None = None
    audit_uuid: str | None = None
    state: str | None = None
    strategy: str | None = None
    global_efficacy: dict[str, Any] | list[dict[str, Any]] | None = None
    hostname: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    links: list[Link] | None = None


class Action(WatcherResource):
    uuid: str | None = None
    action_plan_uuid: str | None = None
    action_type: str | None = None
    state: str | None = None
    parameters: dict[str, Any] | None = None
    parents: list[str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    links: list[Link] | None = None


class EfficacyIndicatorSpec(BaseModel):
    name: str
    description: str | None = None
    unit: str | None = None
    schema_: str | None = Field(default=None, alias="schema")


class Goal(WatcherResource):
    uuid: str | None = None
    name: str
    display_name: str | None = None
    efficacy_specification: list[EfficacyIndicatorSpec] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    links: list[Link] | None = None


class StrategyParameter(BaseModel):
    name: str
    type: str
    default: Any = None
    description: str | None = None
    required: bool = False


class Strategy(WatcherResource):
    uuid: str | None = None
    name: str
    display_name: str | None = None
    goal_uuid: str | None = None
    parameters_spec: list[StrategyParameter] | dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    links: list[Link] | None = None


class DataModel(WatcherResource):
    """Snapshot of the infrastructure data model."""

    type: str | None = None
    data: dict[str, Any] | None = None


class ListOptions(BaseModel):
    """Pagination and sorting for list calls."""

    limit: int | None = None
    marker: str | None = None
    sort_key: str | None = None
    sort_dir: Literal["asc", "desc"] | None = None

    def to_params(self) -> dict[str, str]:
        """Build query parameters, omitting unset fields."""
        params: dict[str, str] = {}
        if self.limit is not None and self.limit > 0:
            params["limit"] = str(self.limit)
        if self.marker:
            params["marker"] = self.marker
        if self.sort_key:
            params["sort_key"] = self.sort_key
        if self.sort_dir:
            params["sort_dir"] = self.sort_dir
        return params
