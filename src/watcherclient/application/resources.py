"""Resource managers mapping Watcher REST collections onto the client."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from watcherclient.domain.models import (
    Action,
    ActionPlan,
    Audit,
    AuditTemplate,
    DataModel,
    Goal,
    ListOptions,
    Strategy,
)

if TYPE_CHECKING:
    from watcherclient.application.watcher_client import WatcherClient

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_patch(updates: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Build an RFC 6902 JSON Patch replacing each key, in sorted key order."""
    return [{"op": "replace", "path": f"/{key}", "value": updates[key]} for key in sorted(updates)]


class ResourceManager(Generic[ModelT]):
    """Shared request plumbing for one Watcher collection."""

    resource_class: type[ModelT]
    collection_path: str
    collection_key: str

    def __init__(self, client: "WatcherClient"):
        self.client = client

    def _path(self, identifier: str | None = None) -> str:
        if identifier is None:
            return self.collection_path
        return f"{self.collection_path}/{identifier}"

    def _get(self, identifier: str) -> ModelT:
        data = self.client.request_json("GET", self._path(identifier))
        return self.resource_class.model_validate(data or {})

    def _list(self, path: str, options: ListOptions | None = None) -> list[ModelT]:
        params = options.to_params() if options else None
        data = self.client.request_json("GET", path, params=params) or {}
        items = data.get(self.collection_key, [])
        return [self.resource_class.model_validate(item) for item in items]

    def _create(self, resource: ModelT | Mapping[str, Any]) -> ModelT:
        if isinstance(resource, BaseModel):
            body = resource.model_dump(mode="json", exclude_none=True, by_alias=True)
        else:
            body = dict(resource)
        data = self.client.request_json("POST", self.collection_path, json=body)
        return self.resource_class.model_validate(data or {})

    def _update(self, identifier: str, updates: Mapping[str, Any]) -> ModelT:
        data = self.client.request_json("PATCH", self._path(identifier), json=build_patch(updates))
        return self.resource_class.model_validate(data or {})

    def _delete(self, identifier: str) -> None:
        self.client.request("DELETE", self._path(identifier)).close()


class AuditManager(ResourceManager[Audit]):
    resource_class = Audit
    collection_path = "/audits"
    collection_key = "audits"

    def create(self, audit: Audit | Mapping[str, Any]) -> Audit:
        return self._create(audit)

    def get(self, uuid: str) -> Audit:
        return self._get(uuid)

    def list(self, options: ListOptions | None = None) -> list[Audit]:
        return self._list(self.collection_path, options)

    def update(self, uuid: str, updates: Mapping[str, Any]) -> Audit:
        return self._update(uuid, updates)

    def delete(self, uuid: str) -> None:
        self._delete(uuid)

    def start(self, uuid: str) -> Audit:
        """Move the audit to ONGOING."""
        return self._update(uuid, {"state": "ONGOING"})


class AuditTemplateManager(ResourceManager[AuditTemplate]):
    resource_class = AuditTemplate
    collection_path = "/audit_templates"
    collection_key = "audit_templates"

    def create(self, template: AuditTemplate | Mapping[str, Any]) -> AuditTemplate:
        return self._create(template)

    def get(self, uuid: str) -> AuditTemplate:
        return self._get(uuid)

    def list(self, options: ListOptions | None = None) -> list[AuditTemplate]:
        return self._list(self.collection_path, options)

    def update(self, uuid: str, updates: Mapping[str, Any]) -> AuditTemplate:
        return self._update(uuid, updates)

    def delete(self, uuid: str) -> None:
        self._delete(uuid)


class ActionPlanManager(ResourceManager[ActionPlan]):
    resource_class = ActionPlan
    collection_path = "/action_plans"
    collection_key = "action_plans"

    def get(self, uuid: str) -> ActionPlan:
        return self._get(uuid)

    def list(self, options: ListOptions | None = None) -> list[ActionPlan]:
        return self._list(self.collection_path, options)

    def update(self, uuid: str, updates: Mapping[str, Any]) -> ActionPlan:
        return self._update(uuid, updates)

    def delete(self, uuid: str) -> None:
        self._delete(uuid)

    def start(self, uuid: str) -> ActionPlan:
        """Trigger execution of the action plan."""
        return self._update(uuid, {"state": "TRIGGERED"})

    def cancel(self, uuid: str) -> ActionPlan:
        return self._update(uuid, {"state": "CANCELLED"})


class ActionManager(ResourceManager[Action]):
    resource_class = Action
    collection_path = "/actions"
    collection_key = "actions"

    def get(self, uuid: str) -> Action:
        return self._get(uuid)

    def list_by_action_plan(self, action_plan_uuid: str) -> list[Action]:
        return self._list(f"/action_plans/{action_plan_uuid}/actions")

    # Keep last: it shadows the builtin list in the class body
    def list(self, options: ListOptions | None = None) -> list[Action]:
        return self._list(self.collection_path, options)


class GoalManager(ResourceManager[Goal]):
    resource_class = Goal
    collection_path = "/goals"
    collection_key = "goals"

    def get(self, identifier: str) -> Goal:
        """Fetch a goal by UUID or name."""
        return self._get(identifier)

    def list(self, options: ListOptions | None = None) -> list[Goal]:
        return self._list(self.collection_path, options)


class StrategyManager(ResourceManager[Strategy]):
    resource_class = Strategy
    collection_path = "/strategies"
    collection_key = "strategies"

    def get(self, identifier: str) -> Strategy:
        """Fetch a strategy by UUID or name."""
        return self._get(identifier)

    def list_by_goal(self, goal: str) -> list[Strategy]:
        return self._list(f"/goals/{goal}/strategies")

    def list(self, options: ListOptions | None = None) -> list[Strategy]:
        return self._list(self.collection_path, options)


class DataModelManager:
    """Read access to the infrastructure data model."""

    def __init__(self, client: "WatcherClient"):
        self.client = client

    def get(self, data_model_type: str | None = None) -> DataModel:
        params = {"type": data_model_type} if data_model_type else None
        data = self.client.request_json("GET", "/data_model", params=params)
        return DataModel.model_validate(data or {})
