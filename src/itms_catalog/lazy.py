# itms_catalog/lazy.py

"""Field groups: sets of entity fields filled together by one fetch.

An entity declares its fields with :class:`lazy_field`, naming the group each
belongs to, and registers one loader per group. The first read of any field
in an unfetched group runs that group's loader exactly once; later reads are
served from the entity's cache. A loader that raises leaves the group failed,
and every later read of the group re-raises the same error.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from itms_catalog.errors import CatalogError, FetchInProgressError

logger = logging.getLogger(__name__)


class GroupState(str, Enum):
    UNFETCHED = "unfetched"
    FETCHING = "fetching"
    POPULATED = "populated"
    FAILED = "failed"


class FieldGroup:
    """State machine for one group: unfetched -> fetching -> populated/failed."""

    def __init__(
        self,
        name: str,
        loader: Callable[[], dict[str, Any]],
        store: Callable[[dict[str, Any]], None],
    ) -> None:
        self.name = name
        self._loader = loader
        self._store = store
        self._lock = threading.RLock()
        self.state = GroupState.UNFETCHED
        self.error: Exception | None = None

    def ensure(self) -> None:
        """Run the loader and store its fields if that has not happened yet.

        Other threads block until an in-flight fetch finishes; re-entry from
        the fetching thread raises FetchInProgressError.
        """
        with self._lock:
            if self.state is GroupState.POPULATED:
                return
            if self.state is GroupState.FAILED and self.error is not None:
                raise self.error
            if self.state is GroupState.FETCHING:
                msg = f"Field group {self.name!r} is already being fetched."
                raise FetchInProgressError(msg)

            self.state = GroupState.FETCHING
            try:
                fields = self._loader()
            except CatalogError as exc:
                self.state = GroupState.FAILED
                self.error = exc
                logger.warning("Fetching field group %r failed: %s", self.name, exc)
                raise
            except Exception as exc:
                self.state = GroupState.FAILED
                self.error = exc
                logger.exception("Unexpected error fetching field group %r", self.name)
                raise

            self._store(fields)
            self.state = GroupState.POPULATED


class LazyEntity:
    """Base for entities whose fields are filled by field-group fetches."""

    def __init__(self, **prefill: Any) -> None:
        self._fields: dict[str, Any] = {}
        self._groups: dict[str, FieldGroup] = {}
        self._keep_prefilled: set[str] = set()

        for name, value in prefill.items():
            if not isinstance(getattr(type(self), name, None), lazy_field):
                msg = f"{type(self).__name__} has no field {name!r} to prefill."
                raise TypeError(msg)
            # an unknown value is no prefill; the field still triggers a fetch
            if value is not None:
                self._fields[name] = value

    def _register_group(
        self,
        name: str,
        loader: Callable[[], dict[str, Any]],
    ) -> None:
        self._groups[name] = FieldGroup(name, loader, self._store_fields)

    def _ensure_group(self, name: str) -> None:
        self._groups[name].ensure()

    def _store_fields(self, fields: dict[str, Any]) -> None:
        for key, value in fields.items():
            if key in self._keep_prefilled and self._fields.get(key) is not None:
                continue
            self._fields[key] = value

    def group_state(self, name: str) -> GroupState:
        """The current state of the named field group."""
        return self._groups[name].state


class lazy_field:  # noqa: N801
    """Descriptor for a field populated by the named field group."""

    def __init__(self, group: str, doc: str | None = None) -> None:
        self.group = group
        self.__doc__ = doc

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: LazyEntity | None, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        if self.name not in obj._fields:
            obj._ensure_group(self.group)
        return obj._fields.get(self.name)
