from __future__ import annotations

from dataclasses import dataclass

from ..models import ApiEnvelope
from ..models_inventory import Location
from .base import BaseClient


@dataclass
class LocationsClient(BaseClient):
    def list_locations(self) -> list[Location]:
        payload = self._request("get_locations")
        return [Location.model_validate(row) for row in payload.get("data") or []]

    def list_trashed_locations(self) -> list[Location]:
        payload = self._request("get_trashed_locations")
        return [Location.model_validate(row) for row in payload.get("data") or []]

    def add_location(self, name: str) -> ApiEnvelope:
        return self._mutate("add_location", {"name": name})

    def update_location(self, location_id: int, name: str) -> ApiEnvelope:
        return self._mutate("update_location", {"id": location_id, "name": name})

    def delete_location(self, location_id: int) -> ApiEnvelope:
        return self._mutate("delete_location", {"id": location_id})

    def restore_location(self, location_id: int) -> ApiEnvelope:
        return self._mutate("restore_location", {"id": location_id})

    def permanently_delete_location(self, location_id: int) -> ApiEnvelope:
        return self._mutate("permanently_delete_location", {"id": location_id})

    def _mutate(self, action: str, body: dict[str, object]) -> ApiEnvelope:
        payload = self._request(action, "POST", json_body=body)
        return ApiEnvelope.model_validate(payload)
