"""Concurrent scan of dependencies for newer versions.

Each module is resolved on a bounded thread pool. Results travel through a
single queue and are yielded in completion order; the stream ends once every
worker has finished.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from constants import Constants
from common.errors import NoVersionsError
from common.logging_utils import extra_context, is_debug_enabled
from versioning import paths, semver
from versioning.models import ModuleVersion, Update
from versioning.resolver import ModuleResolver

logger = logging.getLogger(__name__)

_DONE = object()


class UpdateScanner:
    """Find newer versions for a batch of (module, version) pairs."""

    def __init__(
        self,
        resolver: ModuleResolver,
        pre: bool = False,
        major: bool = False,
        cached: bool = True,
        exclude: Sequence[str] = (),
    ):
        """Initialize the scanner.

        Args:
            resolver: Resolver used for every module.
            pre: Allow non-v0 prereleases.
            major: Only report strictly newer major versions.
            cached: Cache-preferring proxy mode; allows more workers.
            exclude: GOPRIVATE-style patterns of modules never queried.
        """
        self.resolver = resolver
        self.pre = pre
        self.major = major
        self.exclude = list(exclude)
        self.limit = Constants.CACHED_CONCURRENCY if cached else Constants.LIVE_CONCURRENCY

    def check(self, module: ModuleVersion) -> Optional[Update]:
        """Resolve one module; returns None when there is nothing to report."""
        try:
            mod = self.resolver.latest(module.path, self.pre)
        except NoVersionsError:
            return None
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # isolated per module; reported through the stream
            return Update(module=module, err=exc)
        if mod is None:
            return None
        version = mod.max_version("", self.pre)
        if not semver.is_newer_version(module.version, version, self.major):
            return None
        return Update(module=module, latest=ModuleVersion(mod.with_major_path(version), version))

    def scan(self, modules: Iterable[ModuleVersion]) -> Iterator[Update]:
        """Yield one Update per module with a newer version or an error."""
        targets: List[ModuleVersion] = []
        for module in modules:
            if paths.match_prefix_patterns(self.exclude, module.path):
                logger.debug("Skipping excluded module %s", module.path)
                continue
            targets.append(module)

        results: "queue.Queue" = queue.Queue()

        def _work(module: ModuleVersion) -> None:
            update = self.check(module)
            if update is not None:
                results.put(update)

        def _produce() -> None:
            try:
                with ThreadPoolExecutor(max_workers=self.limit, thread_name_prefix="modbump-scan") as pool:
                    wait([pool.submit(_work, m) for m in targets])
            finally:
                results.put(_DONE)

        if is_debug_enabled(logger):
            logger.debug(
                "Starting update scan",
                extra=extra_context(
                    event="function_entry",
                    component="updates",
                    action="scan",
                    count=len(targets),
                    concurrency=self.limit,
                ),
            )
        producer = threading.Thread(target=_produce, name="modbump-scan-producer", daemon=True)
        producer.start()
        while True:
            item = results.get()
            if item is _DONE:
                break
            yield item
        producer.join()

    def run(
        self,
        modules: Iterable[ModuleVersion],
        on_update: Optional[Callable[[Update], None]] = None,
        on_error: Optional[Callable[[Update], None]] = None,
    ) -> int:
        """Consume :meth:`scan`, dispatching to callbacks.

        Returns:
            Number of failed modules.
        """
        failures = 0
        for update in self.scan(modules):
            if update.err is not None:
                failures += 1
                if on_error is not None:
                    on_error(update)
            elif on_update is not None:
                on_update(update)
        return failures
