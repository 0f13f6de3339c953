"""Interactive endpoint editing: selection, roles, categories and CRUD."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from mcpgen.importer.extractor import default_role
from mcpgen.models import Endpoint, McpType
from mcpgen.utils.ids import random_id
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

GENERAL_CATEGORY = "general"

RoleFilter = Literal["all", "resources", "tools"]

_ROLE_FILTERS: dict[str, McpType] = {"resources": "resource", "tools": "tool"}


def category_of(path: str) -> str:
    """Category of an endpoint: first path segment, or ``general`` for ``/``."""
    segments = [segment for segment in path.split("/") if segment]
    return segments[0] if segments else GENERAL_CATEGORY


class EndpointFilter(BaseModel):
    """Display filter over the endpoint list."""

    search: str = ""
    role_filter: RoleFilter = "all"
    selected_only: bool = False

    def matches(self, endpoint: Endpoint) -> bool:
        if self.search:
            needle = self.search.lower()
            haystacks = (endpoint.path, endpoint.description, endpoint.method)
            if not any(needle in value.lower() for value in haystacks):
                return False
        role = _ROLE_FILTERS.get(self.role_filter)
        if role is not None and endpoint.mcp_type != role:
            return False
        return not (self.selected_only and not endpoint.selected)


class EditResult(BaseModel):
    """Outcome of an add or update; rejected edits leave the list untouched."""

    ok: bool
    endpoint: Endpoint | None = None
    errors: list[str] = Field(default_factory=list)


class EndpointEditor:
    """In-memory editor over a caller-owned endpoint list.

    The editor holds its own copy of the list; read it back through
    ``endpoints`` after editing and persist it wherever it belongs.
    """

    def __init__(self, endpoints: list[Endpoint] | None = None) -> None:
        self._endpoints: list[Endpoint] = list(endpoints or [])

    @property
    def endpoints(self) -> list[Endpoint]:
        return list(self._endpoints)

    def _index_of(self, endpoint_id: str) -> int | None:
        for index, endpoint in enumerate(self._endpoints):
            if endpoint.id == endpoint_id:
                return index
        return None

    def _replace(self, index: int, **changes: Any) -> Endpoint:
        updated = self._endpoints[index].model_copy(update=changes)
        self._endpoints[index] = updated
        return updated

    # ------------------------------------------------------------------
    # Selection and roles
    # ------------------------------------------------------------------

    def toggle_selection(self, endpoint_id: str) -> None:
        """Flip the inclusion flag of one endpoint; unknown ids are ignored."""
        index = self._index_of(endpoint_id)
        if index is not None:
            self._replace(index, selected=not self._endpoints[index].selected)

    def toggle_category(self, category: str, selected: bool) -> int:
        """Set selection for every endpoint in a category.

        Args:
            category: First path segment, or ``general``.
            selected: New inclusion flag.

        Returns:
            Number of endpoints in the category.
        """
        count = 0
        for index, endpoint in enumerate(self._endpoints):
            if category_of(endpoint.path) == category:
                self._replace(index, selected=selected)
                count += 1
        return count

    def set_role(self, endpoint_id: str, role: McpType) -> None:
        """Assign an MCP role to one endpoint."""
        index = self._index_of(endpoint_id)
        if index is not None:
            self._replace(index, mcp_type=role)

    def auto_classify(self) -> None:
        """Re-derive every role from the HTTP method, dropping manual overrides."""
        self._endpoints = [ep.model_copy(update={"mcp_type": default_role(ep.method)}) for ep in self._endpoints]
        logger.debug("endpoints_auto_classified", count=len(self._endpoints))

    def select_all_visible(self, endpoint_filter: EndpointFilter, selected: bool = True) -> int:
        """Apply a selection flag to every endpoint the filter shows.

        Returns:
            Number of endpoints changed.
        """
        count = 0
        for index, endpoint in enumerate(self._endpoints):
            if endpoint_filter.matches(endpoint):
                self._replace(index, selected=selected)
                count += 1
        return count

    def deselect_all_visible(self, endpoint_filter: EndpointFilter) -> int:
        return self.select_all_visible(endpoint_filter, selected=False)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_endpoint(self, draft: dict[str, Any]) -> EditResult:
        """Append a new endpoint built from a draft mapping.

        Args:
            draft: Endpoint fields; ``path`` and ``method`` are required.

        Returns:
            EditResult holding the stored endpoint, or the validation errors.
        """
        if not str(draft.get("path") or "").strip():
            return EditResult(ok=False, errors=["Path is required"])

        values = {"method": "GET", **draft}
        values.setdefault("id", random_id())
        try:
            endpoint = Endpoint.model_validate(values)
        except ValidationError as exc:
            return EditResult(ok=False, errors=[err["msg"] for err in exc.errors()])

        if endpoint.mcp_type is None:
            endpoint = endpoint.model_copy(update={"mcp_type": default_role(endpoint.method)})
        self._endpoints.append(endpoint)
        logger.debug("endpoint_added", id=endpoint.id, path=endpoint.path, method=endpoint.method)
        return EditResult(ok=True, endpoint=endpoint)

    def update_endpoint(self, endpoint_id: str, patch: dict[str, Any]) -> EditResult:
        """Apply a partial update to one endpoint.

        Args:
            endpoint_id: Target endpoint id.
            patch: Fields to change (wire or attribute names).

        Returns:
            EditResult with the updated endpoint, or why it was rejected.
        """
        index = self._index_of(endpoint_id)
        if index is None:
            return EditResult(ok=False, errors=[f"Unknown endpoint {endpoint_id}"])
        if "path" in patch and not str(patch["path"] or "").strip():
            return EditResult(ok=False, errors=["Path is required"])

        current = self._endpoints[index].model_dump(by_alias=True)
        alias_names = {"mcp_type": "mcpType"}
        for key, value in patch.items():
            current[alias_names.get(key, key)] = value
        current["id"] = endpoint_id

        try:
            updated = Endpoint.model_validate(current)
        except ValidationError as exc:
            return EditResult(ok=False, errors=[err["msg"] for err in exc.errors()])

        self._endpoints[index] = updated
        return EditResult(ok=True, endpoint=updated)

    def remove_endpoint(self, endpoint_id: str) -> bool:
        """Delete an endpoint; returns False when the id is unknown."""
        index = self._index_of(endpoint_id)
        if index is None:
            return False
        del self._endpoints[index]
        return True

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    def filter(
        self,
        search: str = "",
        role_filter: RoleFilter = "all",
        selected_only: bool = False,
    ) -> list[Endpoint]:
        """Endpoints matching a search term, role and selection filter."""
        endpoint_filter = EndpointFilter(search=search, role_filter=role_filter, selected_only=selected_only)
        return [ep for ep in self._endpoints if endpoint_filter.matches(ep)]

    def categories(self) -> dict[str, list[Endpoint]]:
        """Group endpoints by category, keeping first-seen category order."""
        groups: dict[str, list[Endpoint]] = {}
        for endpoint in self._endpoints:
            groups.setdefault(category_of(endpoint.path), []).append(endpoint)
        return groups
