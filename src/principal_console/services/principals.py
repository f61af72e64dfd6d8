from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Protocol

from pydantic import ValidationError

from principal_console.data import PrincipalNode
from principal_console.tree import TreeDataStore
from principal_console.utils import get_logger

from .base import EventHook, ProviderScope, RefreshEvent, ServiceErrorEvent
from .errors import ForestLoadError, categorize_load_error


logger = get_logger(__name__)


class ForestLoader(Protocol):
    async def load_forest(self, scope: ProviderScope) -> list[PrincipalNode]: ...


class PayloadForestLoader:
    """Adapt a raw payload fetcher into a :class:`ForestLoader`.

    Roots that fail validation are skipped and counted rather than failing
    the whole load.
    """

    def __init__(
        self,
        fetch: Callable[[ProviderScope], Awaitable[list[dict[str, Any]]]],
    ) -> None:
        self._fetch = fetch
        self.last_invalid_count = 0

    async def load_forest(self, scope: ProviderScope) -> list[PrincipalNode]:
        payloads = await self._fetch(scope)
        forest: list[PrincipalNode] = []
        invalid = 0
        for payload in payloads or []:
            try:
                forest.append(PrincipalNode.from_payload(payload))
            except ValidationError as exc:
                invalid += 1
                logger.debug(
                    "Principal payload failed validation",
                    scope=scope.label,
                    errors=exc.error_count(),
                )
        self.last_invalid_count = invalid
        if invalid:
            logger.warning(
                "Principal load skipped invalid payloads",
                scope=scope.label,
                invalid=invalid,
            )
        return forest


class PrincipalTreeService:
    """Load principal forests into a tree store, newest request wins.

    Each call to :meth:`load` takes a generation number; a response that
    resolves after a newer load started is discarded. A failed load leaves
    the store untouched and is both emitted on :attr:`errors` and re-raised.
    """

    def __init__(
        self,
        loader: ForestLoader,
        store: TreeDataStore,
        *,
        default_scope: ProviderScope | None = None,
    ) -> None:
        self._loader = loader
        self._store = store
        self._scope = default_scope
        self._generation = 0

        self.refreshed: EventHook[RefreshEvent[list[PrincipalNode]]] = EventHook()
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    @property
    def store(self) -> TreeDataStore:
        return self._store

    @property
    def scope(self) -> ProviderScope | None:
        return self._scope

    @property
    def generation(self) -> int:
        return self._generation

    async def load(self, scope: ProviderScope | None = None) -> list[PrincipalNode] | None:
        target = scope or self._scope
        if target is None:
            raise RuntimeError("No provider scope configured for principal load")

        self._generation += 1
        generation = self._generation
        logger.debug("Loading principal forest", scope=target.label, generation=generation)

        try:
            forest = await self._loader.load_forest(target)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            if generation != self._generation:
                logger.debug(
                    "Ignoring failure of superseded principal load",
                    scope=target.label,
                    generation=generation,
                )
                return None
            error = exc
            if not isinstance(exc, ForestLoadError):
                error = ForestLoadError(
                    message=f"Failed to load principals for {target.label}: {exc}",
                    provider=target.provider,
                    org_id=target.org_id,
                    category=categorize_load_error(exc),
                    inner_error=exc,
                )
            logger.exception("Failed to load principal forest", scope=target.label)
            self.errors.emit(ServiceErrorEvent(scope=target, error=error))
            if error is exc:
                raise
            raise error from exc

        if generation != self._generation:
            logger.debug(
                "Discarding superseded principal load",
                scope=target.label,
                generation=generation,
                current=self._generation,
            )
            return None

        self._scope = target
        view = self._store.initialize(forest)
        self.refreshed.emit(
            RefreshEvent(scope=target, items=list(forest), generation=generation)
        )
        logger.info(
            "Principal forest loaded",
            scope=target.label,
            roots=len(forest),
            generation=generation,
        )
        return view


__all__ = ["ForestLoader", "PayloadForestLoader", "PrincipalTreeService"]
