from __future__ import annotations

from typing import Any

from ..exceptions import ApiError
from ..logging_utils import log_action
from ..models import ApiEnvelope
from ..models_inventory import MAIN_WAREHOUSE_ID, Location
from ..session import ApiSession
from ..stock_validation import raise_issue, validate_location_name


class BranchService:
    """Branch CRUD. Every successful change drops the cached locations list."""

    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_branches(self, force: bool = False) -> list[Location]:
        return self.session.snapshot.load_locations(self.session.locations_client(), force=force)

    def list_trashed(self) -> list[Location]:
        return self.session.locations_client().list_trashed_locations()

    def create(self, name: str | None) -> ApiEnvelope:
        cleaned = validate_location_name(name)
        return self._mutate("add_location", lambda client: client.add_location(cleaned), name=cleaned)

    def rename(self, location_id: int, name: str | None) -> ApiEnvelope:
        _ensure_real_branch(location_id)
        cleaned = validate_location_name(name)
        return self._mutate(
            "update_location",
            lambda client: client.update_location(location_id, cleaned),
            location_id=location_id,
            name=cleaned,
        )

    def trash(self, location_id: int) -> ApiEnvelope:
        _ensure_real_branch(location_id)
        return self._mutate("delete_location", lambda client: client.delete_location(location_id), location_id=location_id)

    def restore(self, location_id: int) -> ApiEnvelope:
        _ensure_real_branch(location_id)
        return self._mutate("restore_location", lambda client: client.restore_location(location_id), location_id=location_id)

    def delete_permanently(self, location_id: int) -> ApiEnvelope:
        _ensure_real_branch(location_id)
        return self._mutate(
            "permanently_delete_location",
            lambda client: client.permanently_delete_location(location_id),
            location_id=location_id,
        )

    def _mutate(self, action: str, call, **context: Any) -> ApiEnvelope:
        with self.session.guard.hold(f"{action}:{context.get('location_id', 'new')}"):
            try:
                response = call(self.session.locations_client())
            except ApiError as exc:
                log_action(self.session.logger, "branches", action, "failure", code=exc.code, **context)
                raise
        self.session.snapshot.invalidate_locations()
        log_action(self.session.logger, "branches", action, "success", **context)
        return response


def _ensure_real_branch(location_id: int) -> None:
    if location_id == MAIN_WAREHOUSE_ID:
        raise_issue(None, "id", "the Main Warehouse is not a branch and cannot be changed")
