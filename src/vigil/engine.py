"""Analysis orchestrators.

FileAnalyzer turns one file's content into a FileResult: parse, run each
enabled analyzer, collect metrics. It never raises; parse failures become a
single ``parse-error`` finding and analyzer failures are recorded as errors.

RepositoryAnalyzer drives FileAnalyzer over a file provider, aggregating
results, honouring cancellation, and reporting to progress and persistence
sinks.
"""

import logging
import time
from typing import TYPE_CHECKING

from vigil.analyzers import (
    AnalysisContext,
    AnalysisTimeout,
    AnalyzerRegistry,
    Deadline,
    ParseError,
    ParserAdapter,
    TreeSitterUnavailableError,
    collect_metrics,
    default_analyzers,
    resolve_language,
)
from vigil.models import (
    AnalysisError,
    AnalysisStatus,
    FileMetrics,
    FileResult,
    Finding,
    Location,
    RepositoryResult,
    Severity,
)
from vigil.rules import PARSE_ERROR_RULE_ID, RuleSet
from vigil.sinks import FindingSink, NullFindingSink, ProgressSink, null_progress
from vigil.sources import (
    AnalysisOptions,
    CancellationToken,
    FileProvider,
    ProviderFailure,
    SourceFile,
    as_source_file,
)
from vigil.utils.logging import get_logger

if TYPE_CHECKING:
    from vigil.config import VigilConfig

logger = get_logger(__name__)

# Default per-file time budget in seconds
DEFAULT_FILE_TIMEOUT = 30.0


def count_lines(content: str) -> int:
    """Count lines the way editors number them; empty content has none."""
    if not content:
        return 0
    return len(content.split("\n"))


class FileAnalyzer:
    """Analyzes a single file's content.

    The analyzer holds no per-file state, so one instance can analyze any
    number of files; repeated calls with the same input give equal results.
    """

    def __init__(
        self,
        rules: RuleSet | None = None,
        parser: ParserAdapter | None = None,
        registry: AnalyzerRegistry | None = None,
        file_timeout: float | None = DEFAULT_FILE_TIMEOUT,
        min_severity: Severity = Severity.LOW,
    ) -> None:
        """Initialize the file analyzer.

        Args:
            rules: Rule set in effect (built-in defaults if None)
            parser: Parser adapter (strict tree-sitter adapter if None)
            registry: Analyzers to run (built-in analyzers if None)
            file_timeout: Per-file time budget in seconds (None disables it)
            min_severity: Findings below this severity are dropped
        """
        self.rules = rules if rules is not None else RuleSet.default()
        self.parser = parser or ParserAdapter()
        self.registry = registry if registry is not None else default_analyzers()
        self.file_timeout = file_timeout
        self.min_severity = min_severity

    @classmethod
    def from_config(cls, config: "VigilConfig") -> "FileAnalyzer":
        """Build a file analyzer from loaded configuration."""
        return cls(
            rules=config.rule_set(),
            parser=ParserAdapter(tolerant=config.analysis.tolerant_parsing),
            file_timeout=config.analysis.file_timeout,
            min_severity=Severity.parse(config.analysis.min_severity),
        )

    def analyze_file(
        self,
        path: str,
        content: str,
        language: str | None = None,
    ) -> FileResult:
        """Analyze one file.

        Args:
            path: File path (used for language resolution and locations)
            content: Full file text
            language: Language id; resolved from the path if None

        Returns:
            FileResult; empty for unsupported languages
        """
        started = time.perf_counter()
        lines = count_lines(content)

        language = language or resolve_language(path)
        if language is None:
            logger.debug("Skipping %s: unsupported language", path)
            return FileResult(path=path, language=None)

        deadline = Deadline(self.file_timeout) if self.file_timeout else None

        try:
            root = self.parser.parse(content, language, deadline)
        except (ParseError, TreeSitterUnavailableError) as e:
            logger.info("Failed to parse %s: %s", path, e)
            return self._failed(path, language, lines, str(e), started)
        except AnalysisTimeout as e:
            logger.warning("Timed out parsing %s: %s", path, e)
            return self._failed(path, language, lines, str(e), started, timed_out=True)
        except Exception as e:
            logger.error("Parser crashed on %s: %s", path, e, exc_info=True)
            return self._failed(path, language, lines, str(e), started)

        context = AnalysisContext(
            path=path,
            language=language,
            rules=self.rules,
            deadline=deadline,
        )
        findings: list[Finding] = []
        errors: list[AnalysisError] = []

        try:
            for analyzer in self.registry:
                if not analyzer.applies_to(context):
                    continue
                try:
                    produced = list(analyzer.analyze(root, context))
                except AnalysisTimeout:
                    raise
                except Exception as e:
                    logger.warning("Analyzer %s failed on %s: %s", analyzer.name, path, e)
                    errors.append(
                        AnalysisError(component=analyzer.name, message=str(e), file_path=path)
                    )
                else:
                    findings.extend(produced)

            try:
                metrics = collect_metrics(root, lines, deadline)
            except AnalysisTimeout:
                raise
            except Exception as e:
                logger.warning("Metrics collection failed on %s: %s", path, e)
                errors.append(AnalysisError(component="metrics", message=str(e), file_path=path))
                metrics = FileMetrics(lines=lines)

        except AnalysisTimeout as e:
            logger.warning("Timed out analyzing %s: %s", path, e)
            return self._failed(path, language, lines, str(e), started, timed_out=True)

        return FileResult(
            path=path,
            language=language,
            metrics=metrics,
            findings=self._finish(path, findings),
            errors=tuple(errors),
            parsed=True,
            duration=time.perf_counter() - started,
        )

    def _finish(self, path: str, findings: list[Finding]) -> tuple[Finding, ...]:
        """Apply the severity floor and assign run-unique ids.

        The parse-error finding is never filtered: it is the only record that
        the file could not be analyzed.
        """
        kept = [
            f for f in findings
            if f.severity >= self.min_severity or f.rule.id == PARSE_ERROR_RULE_ID
        ]
        return tuple(
            f.with_id(f"{f.rule.id}:{path}:{f.line}:{ordinal}")
            for ordinal, f in enumerate(kept, start=1)
        )

    def _failed(
        self,
        path: str,
        language: str,
        lines: int,
        message: str,
        started: float,
        timed_out: bool = False,
    ) -> FileResult:
        """Build the result for a file that produced no usable tree."""
        rule = self.rules.get(PARSE_ERROR_RULE_ID) or RuleSet.default()[PARSE_ERROR_RULE_ID]
        finding = Finding(
            id="",
            category=rule.category,
            severity=Severity.HIGH,
            title="Parse Error",
            description=f"Failed to parse file: {message}",
            location=Location(path=path, line=1, column=1),
            rule=rule.ref(),
            metadata={"tags": ("timeout",)} if timed_out else {},
        )
        errors: tuple[AnalysisError, ...] = ()
        if timed_out:
            errors = (AnalysisError(component="engine", message=message, file_path=path),)

        return FileResult(
            path=path,
            language=language,
            metrics=FileMetrics(lines=lines),
            findings=self._finish(path, [finding]),
            errors=errors,
            parsed=False,
            duration=time.perf_counter() - started,
        )


class RepositoryAnalyzer:
    """Analyzes every file offered by a provider.

    Files are processed sequentially in provider order. The result object is
    owned by the run until it is returned.
    """

    def __init__(
        self,
        file_analyzer: FileAnalyzer | None = None,
        progress: ProgressSink | None = None,
        sink: FindingSink | None = None,
    ) -> None:
        """Initialize the repository analyzer.

        Args:
            file_analyzer: Per-file orchestrator (defaults if None)
            progress: Progress sink (no-op if None)
            sink: Persistence sink (no-op if None)
        """
        self.file_analyzer = file_analyzer or FileAnalyzer()
        self.progress = progress or null_progress
        self.sink = sink or NullFindingSink()

    def analyze_repository(
        self,
        provider: FileProvider,
        options: AnalysisOptions | None = None,
        cancellation: CancellationToken | None = None,
    ) -> RepositoryResult:
        """Run analysis over all files of a provider.

        Args:
            provider: Iterable of SourceFile or ``(path, content)`` entries
            options: Include/exclude path filters
            cancellation: Token checked before each file

        Returns:
            RepositoryResult, COMPLETED or CANCELLED (with partial results)
        """
        options = options or AnalysisOptions()

        entries = [as_source_file(entry) for entry in provider]
        selected = [entry for entry in entries if options.accepts(entry.path)]
        total = len(selected)

        result = RepositoryResult(total_files=total, status=AnalysisStatus.RUNNING)
        logger.info(
            "Starting repository analysis: %d files (%d filtered out)",
            total,
            len(entries) - total,
        )

        status = AnalysisStatus.COMPLETED
        processed = 0

        try:
            for source in selected:
                if cancellation is not None and cancellation.cancelled:
                    logger.info("Analysis cancelled after %d of %d files", processed, total)
                    status = AnalysisStatus.CANCELLED
                    break

                processed += 1
                self._analyze_one(source, result)
                self._report_progress(result, processed, total, "analyzing")

            result.finalize(status)
            self._report_progress(result, processed, total, status.value)
        finally:
            self._close_sink(result)

        logger.structured(
            logging.INFO,
            f"Analysis {status.value}: {result.analyzed_files}/{total} files analyzed, "
            f"{result.total_issues} issues, score {result.score}",
            status=status.value,
            analyzed_files=result.analyzed_files,
            total_files=total,
            tally=result.tally.to_dict(),
            score=result.score,
        )
        return result

    def _analyze_one(self, source: SourceFile, result: RepositoryResult) -> None:
        """Analyze one provider entry and fold it into the result."""
        language = resolve_language(source.path)
        if language is None:
            logger.debug("Skipping %s: unsupported language", source.path)
            return

        try:
            content = source.read()
        except ProviderFailure as e:
            logger.warning("Skipping %s: %s", source.path, e.message)
            result.add_error(
                AnalysisError(component="provider", message=e.message, file_path=source.path)
            )
            return

        try:
            file_result = self.file_analyzer.analyze_file(source.path, content, language)
        except Exception as e:
            logger.error("Unexpected failure analyzing %s: %s", source.path, e)
            result.add_error(
                AnalysisError(component="engine", message=str(e), file_path=source.path)
            )
            return

        result.add_file(file_result)
        for error in file_result.errors:
            result.add_error(error)

        try:
            self.sink.write(file_result)
        except Exception as e:
            logger.error("Finding sink failed for %s: %s", source.path, e)
            result.add_error(AnalysisError(component="sink", message=str(e), file_path=source.path))

    def _report_progress(
        self, result: RepositoryResult, processed: int, total: int, phase: str
    ) -> None:
        try:
            self.progress(processed, total, phase)
        except Exception as e:
            logger.warning("Progress sink failed at %d/%d: %s", processed, total, e)
            result.add_error(AnalysisError(component="progress", message=str(e)))

    def _close_sink(self, result: RepositoryResult) -> None:
        try:
            self.sink.close(result)
        except Exception as e:
            logger.error("Finding sink failed to close: %s", e)
            result.add_error(AnalysisError(component="sink", message=str(e)))
