"""One-time asynchronous construction of the grammar registry.

Architecture

`RegistryInitializer`
: owns the registry of a single processing run. The first call to
  :meth:`RegistryInitializer.get` schedules one build task; every caller,
  concurrent or later, awaits that same task through :func:`asyncio.shield`
  so that one cancelled consumer never aborts the shared build.

`Package fan-out`
: all configured packages are loaded concurrently and joined before merging.
  A single failure cancels the remaining loads and fails the whole build; the
  error is cached and re-raised to every consumer without retrying.

Once the build completes the registry is cached on the instance, which lets
synchronous hosts drive successive runs through fresh event loops without
reloading anything. A build cancelled by its host, or left behind on a closed
loop, is discarded and the next caller starts a fresh one.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
import logging
from typing import TYPE_CHECKING

from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import FencesmithError, InitializationError
from .registry import GrammarRegistry, build_registry


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import HighlightConfig
    from .grammar import Grammar


logger = logging.getLogger(__name__)

PackageLoader = Callable[[str], Awaitable[Mapping[str, "Grammar"]]]


def _default_loader() -> PackageLoader:
    from fencesmith.adapters.grammars.packages import load_grammar_package

    return load_grammar_package


class RegistryInitializer:
    """Build the grammar registry once and share it with every consumer."""

    def __init__(
        self,
        config: HighlightConfig,
        *,
        loader: PackageLoader | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.config = config
        self._loader = loader
        self.emitter = emitter or NullEmitter()
        self._task: asyncio.Future[GrammarRegistry] | None = None
        self._registry: GrammarRegistry | None = None
        self._error: FencesmithError | None = None

    @property
    def started(self) -> bool:
        """Return True once a build has been scheduled."""
        return self._task is not None or self.done

    @property
    def done(self) -> bool:
        """Return True when the build has either succeeded or failed."""
        return self._registry is not None or self._error is not None

    async def get(self) -> GrammarRegistry:
        """Return the shared registry, building it on first use."""
        if self._registry is not None:
            return self._registry
        if self._error is not None:
            raise self._error
        if self._task is not None and self._abandoned(self._task):
            logger.debug("grammar registry build was abandoned, starting over")
            self._task = None
        if self._task is None:
            self._task = asyncio.ensure_future(self._build())
        return await asyncio.shield(self._task)

    @staticmethod
    def _abandoned(task: asyncio.Future[GrammarRegistry]) -> bool:
        # A host may cancel the build or close the loop that was running it.
        if task.done():
            return task.cancelled()
        loop = task.get_loop()
        return loop.is_closed() and loop is not asyncio.get_running_loop()

    def cancel(self) -> None:
        """Abandon an in-flight build; later calls to :meth:`get` start over."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._registry is None and self._error is None:
            self._task = None

    async def _build(self) -> GrammarRegistry:
        packages = list(self.config.grammar_packages)
        try:
            loaded = await self._load_all(packages)
        except InitializationError as exc:
            self._error = exc
            raise

        registry = build_registry(
            self.config.grammars,
            loaded,
            precedence=self.config.package_precedence,
        )
        self._registry = registry
        self.emitter.event("registry_ready", {"languages": registry.languages()})
        logger.debug("grammar registry built with %d languages", len(registry))
        return registry

    async def _load_all(self, packages: list[str]) -> list[Mapping[str, Grammar]]:
        if not packages:
            return []

        loader = self._loader or _default_loader()
        tasks = [asyncio.ensure_future(self._load_one(loader, package)) for package in packages]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _load_one(self, loader: PackageLoader, package: str) -> Mapping[str, Grammar]:
        try:
            grammars = await loader(package)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise InitializationError(
                f"Failed to load grammar package '{package}': {exc}", package=package
            ) from exc
        if not isinstance(grammars, Mapping):
            raise InitializationError(
                f"Grammar package '{package}' did not provide a mapping of grammars",
                package=package,
            )
        self.emitter.event(
            "grammar_package_loaded",
            {"package": package, "languages": sorted(grammars)},
        )
        return grammars


__all__ = ["PackageLoader", "RegistryInitializer"]
