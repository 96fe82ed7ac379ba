"""Documentation engine: discovers components and injects generated docs."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .analyzers.components import ComponentClassifier
from .config import StorydocConfig
from .discovery import ModuleDiscovery, module_identifier
from .emitter import CompanionEmitter
from .errors import ModuleError, ParseError, WriteError
from .formatting import Formatter, build_formatter
from .generation import ArtifactGenerator, TextOracle
from .llm.runner import LLMRunner
from .logging import get_logger, log_module_failure, log_run_summary
from .models import FailedModule, RunSummary
from .parsing import SourceParser
from .splicing import TreeSplicer
from .stores.tracker import FingerprintTracker, fingerprint


class DocumentationEngine:
    """Processes component modules one at a time under a project root.

    Modules whose fingerprint matches the tracker are skipped. Every other
    module is parsed, classified, documented through the text oracle and
    written back; the tracker then records the hash of the written bytes.
    Per-module failures are logged and leave the tracker entry untouched.
    """

    def __init__(
        self,
        config: StorydocConfig,
        runner: TextOracle | None = None,
        *,
        discovery: ModuleDiscovery | None = None,
        parser: SourceParser | None = None,
        classifier: ComponentClassifier | None = None,
        generator: ArtifactGenerator | None = None,
        splicer: TreeSplicer | None = None,
        formatter: Formatter | None = None,
        emitter: CompanionEmitter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.parser = parser or SourceParser()
        self.classifier = classifier or ComponentClassifier()
        self.discovery = discovery or ModuleDiscovery(
            extensions=config.extensions, exclude_paths=config.exclude_paths
        )
        if generator is None:
            generator = ArtifactGenerator(
                runner or self._default_runner(config),
                parser=self.parser,
                request_timeout=config.llm.request_timeout,
            )
        self.generator = generator
        self.splicer = splicer or TreeSplicer(self.parser, self.classifier)
        self.formatter = formatter or build_formatter(config.formatter)
        self.emitter = emitter or CompanionEmitter()
        self._clock = clock
        self.logger = get_logger("engine")

    def run(self, root: Path | str | None = None) -> RunSummary:
        """Synchronous entrypoint around :meth:`run_async`."""
        return asyncio.run(self.run_async(root))

    async def run_async(self, root: Path | str | None = None) -> RunSummary:
        root_path = Path(root or self.config.root).expanduser().resolve()
        modules = self.discovery.discover(root_path)
        tracker = FingerprintTracker(root_path / self.config.tracker_file)
        summary = RunSummary(root=root_path)
        self.logger.info("Discovered %d component modules under %s", len(modules), root_path)
        self.logger.debug("Tracker %s holds %d entries", tracker.path, len(tracker))

        deadline: Optional[float] = None
        if self.config.run_deadline is not None:
            deadline = self._clock() + self.config.run_deadline

        for path in modules:
            if len(summary.materialized) >= self.config.file_limits:
                summary.stopped_reason = "file_limit"
                self.logger.info("File limit of %d reached", self.config.file_limits)
                break
            if deadline is not None and self._clock() >= deadline:
                summary.stopped_reason = "deadline"
                self.logger.warning("Run deadline reached; stopping before %s", path)
                break

            try:
                attempted = await self._process_module(path, root_path, tracker, summary)
            except ModuleError as exc:
                attempted = True
                log_module_failure(self.logger, path, exc.message)
                summary.failed.append(FailedModule(path=path, message=exc.message))

            if attempted:
                tracker.persist()

        log_run_summary(self.logger, summary)
        return summary

    async def _process_module(
        self,
        path: Path,
        root: Path,
        tracker: FingerprintTracker,
        summary: RunSummary,
    ) -> bool:
        """Document one module; returns False when it was skipped as up to date."""
        identifier = module_identifier(root, path)
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise ParseError(path, f"could not read module: {exc}") from exc

        current_hash = fingerprint(source)
        if tracker.is_current(identifier, current_hash):
            self.logger.debug("Skipping %s (up to date)", identifier)
            summary.skipped.append(path)
            return False

        self.logger.info("Processing file: %s", identifier)
        module = self.parser.parse_module(path, identifier, source)
        candidates = self.classifier.classify(module)
        pending = [candidate for candidate in candidates if not candidate.documented]
        if not pending:
            self.logger.info("No undocumented components in %s", identifier)
            tracker.record(identifier, current_hash)
            return True

        self.logger.debug(
            "Found components in %s: %s",
            identifier,
            ", ".join(f"{candidate.name} ({candidate.kind.value})" for candidate in pending),
        )
        artifacts = await self.generator.generate(module, pending)
        spliced = self.splicer.splice(module, artifacts)
        payload = self.formatter.format(spliced, path=path).encode("utf-8")

        companions = [self.emitter.emit(path, item) for item in artifacts]
        try:
            path.write_bytes(payload)
        except OSError as exc:
            raise WriteError(path, f"failed to write module: {exc}") from exc

        tracker.record(identifier, fingerprint(payload))
        summary.materialized.append(path)
        summary.companions.extend(companions)
        self.logger.info("Documented %d components in %s", len(artifacts), identifier)
        return True

    @staticmethod
    def _default_runner(config: StorydocConfig) -> LLMRunner:
        settings = config.llm
        options: Dict[str, Any] = {
            "base_url": settings.base_url,
            "temperature": settings.temperature,
            "max_tokens": settings.max_tokens,
            "request_timeout": settings.request_timeout,
        }
        # Leaving api_key out lets the runner fall back to the environment.
        if settings.api_key:
            options["api_key"] = settings.api_key
        return LLMRunner(settings.model, **options)


__all__ = ["DocumentationEngine"]
