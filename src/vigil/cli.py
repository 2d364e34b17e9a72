"""Vigil CLI interface.

Commands:
- analyze: Analyze a repository directory and report findings
- file: Analyze a single file
- rules: List the effective rule set
- check: Validate parser availability
- init: Initialize Vigil configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines for CI systems
- --version: Show version and exit
"""

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Annotated

import typer

from vigil import __version__
from vigil.config import VigilConfig, create_default_config, load_config
from vigil.models import AnalysisStatus, RepositoryResult, Severity
from vigil.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="vigil",
    help="Static analysis of source repositories: complexity, security, performance and bugs",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: VigilConfig | None = None
_logger = get_logger()

# Exit code when findings at or above the fail-on severity exist
EXIT_FINDINGS = 2


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"vigil {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log lines",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Vigil - static analysis for code review.

    Parses source files into syntax trees and flags complexity, security,
    performance and bug patterns.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


def _current_config() -> VigilConfig:
    return _config if _config is not None else VigilConfig()


def _parse_severity(value: str, option: str) -> Severity:
    try:
        return Severity.parse(value)
    except ValueError as e:
        _logger.error(f"{option}: {e}")
        raise typer.Exit(1)


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    path: Annotated[
        Path,
        typer.Argument(
            help="Repository directory to analyze",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Report format: text, json, markdown (overrides config)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the report to a file instead of stdout",
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-e",
            help="Additional path pattern to exclude (repeatable)",
        ),
    ] = None,
    include: Annotated[
        list[str] | None,
        typer.Option(
            "--include",
            "-i",
            help="Only analyze paths matching this pattern (repeatable)",
        ),
    ] = None,
    fail_on: Annotated[
        str | None,
        typer.Option(
            "--fail-on",
            help="Exit with code 2 if findings at or above this severity exist",
        ),
    ] = None,
    findings_log: Annotated[
        Path | None,
        typer.Option(
            "--findings-log",
            help="Append per-file results as JSON Lines to this file",
        ),
    ] = None,
) -> None:
    """Analyze a repository directory.

    Exit codes:
        0: No findings at or above the fail-on severity
        1: Error during analysis
        2: Findings at or above the fail-on severity
    """
    from vigil.engine import FileAnalyzer, RepositoryAnalyzer
    from vigil.sinks import JSONLinesSink, LoggingProgressSink
    from vigil.sources import CancellationToken, FileSystemProvider
    from vigil.templates import REPORT_FORMATS, ReportRenderer
    from vigil.utils.preflight import PreflightChecker

    config = _current_config()
    repo_path = path.resolve()

    output_format = format or config.output.format
    if output_format not in REPORT_FORMATS:
        _logger.error(f"Invalid format: {output_format}. Valid: {list(REPORT_FORMATS)}")
        raise typer.Exit(1)

    threshold = _parse_severity(fail_on or config.ci.fail_on, "--fail-on")
    output_path = output or (Path(config.output.path) if config.output.path else None)

    options = config.analysis.options()
    if exclude:
        options.exclude_paths.extend(exclude)
    if include:
        options.include_paths = list(include)

    tree_sitter = PreflightChecker().check_tree_sitter()
    if not tree_sitter.available:
        _logger.error(f"Preflight check failed: {tree_sitter.message}")
        raise typer.Exit(1)

    _logger.info(f"Analyzing repository: {repo_path}")

    sink = JSONLinesSink(findings_log) if findings_log else None
    engine = RepositoryAnalyzer(
        file_analyzer=FileAnalyzer.from_config(config),
        progress=LoggingProgressSink(),
        sink=sink,
    )
    provider = FileSystemProvider(repo_path, options)
    token = CancellationToken()

    # The run happens on a worker thread so Ctrl-C cancels it between files
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(engine.analyze_repository, provider, options, token)
        try:
            result = future.result()
        except KeyboardInterrupt:
            _logger.warning("Interrupted, finishing the current file...")
            token.cancel()
            result = future.result()
        except Exception as e:
            _logger.error(f"Analysis failed: {e}")
            raise typer.Exit(1)

    try:
        report = ReportRenderer().render(result, output_format, title=repo_path.name)
    except ValueError as e:
        _logger.error(f"Rendering failed: {e}")
        raise typer.Exit(1)

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(report, encoding="utf-8")
        _logger.info(f"Report written to: {output_path}")
    else:
        typer.echo(report, nl=False)

    raise typer.Exit(_exit_code(result, threshold))


def _exit_code(result: RepositoryResult, threshold: Severity) -> int:
    if result.status is AnalysisStatus.CANCELLED:
        return 1
    if result.tally.at_or_above(threshold) > 0:
        _logger.info(
            f"{result.tally.at_or_above(threshold)} finding(s) at or above {threshold.value}"
        )
        return EXIT_FINDINGS
    return 0


# =============================================================================
# file command
# =============================================================================


@app.command("file")
def analyze_single_file(
    path: Annotated[
        Path,
        typer.Argument(
            help="Source file to analyze",
            exists=True,
            dir_okay=False,
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the file result as JSON",
        ),
    ] = False,
) -> None:
    """Analyze a single source file."""
    from vigil.analyzers import resolve_language
    from vigil.engine import FileAnalyzer

    if resolve_language(path) is None:
        _logger.error(f"Unsupported file type: {path.suffix or path.name}")
        raise typer.Exit(1)

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.error(f"Cannot read {path}: {e}")
        raise typer.Exit(1)

    file_result = FileAnalyzer.from_config(_current_config()).analyze_file(str(path), content)

    if json_output:
        typer.echo(json.dumps(file_result.to_dict(), indent=2))
        raise typer.Exit(0)

    metrics = file_result.metrics
    typer.echo(
        f"{path} ({file_result.language}): {metrics.lines} lines, "
        f"complexity {metrics.complexity}, {metrics.functions} functions, "
        f"{metrics.classes} classes"
    )
    if not file_result.findings:
        typer.echo("✅ No issues found")
    for finding in file_result.findings:
        loc = finding.location
        typer.echo(
            f"  {loc.line}:{loc.column}  {finding.severity.value.upper():<8} "
            f"{finding.title} [{finding.rule.id}]"
        )
        if finding.suggestion:
            typer.echo(f"     └─ {finding.suggestion.fix}")
    raise typer.Exit(0)


# =============================================================================
# rules command
# =============================================================================


@app.command()
def rules(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the rule set as JSON",
        ),
    ] = False,
) -> None:
    """List the effective rule set (defaults plus config overrides)."""
    rule_set = _current_config().rule_set()

    if json_output:
        typer.echo(json.dumps(rule_set.to_dict(), indent=2))
        raise typer.Exit(0)

    typer.echo("\n📋 Rules\n")
    for rule in rule_set.values():
        status = "✅" if rule.enabled else "⏸️ "
        threshold = f" (threshold {rule.threshold})" if rule.threshold is not None else ""
        typer.echo(f"  {status} {rule.id:<28} {rule.category.value:<12} {rule.analyzer}{threshold}")
    typer.echo()
    raise typer.Exit(0)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Validate parser availability.

    Checks that tree-sitter and every language grammar can be loaded before
    running analysis.

    Exit codes:
        0: All required dependencies available
        1: One or more required dependencies missing
    """
    from vigil.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all()

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        raise typer.Exit(0 if result.success else 1)

    typer.echo("\n🔍 Preflight Check Results\n")

    for check_result in result.checks:
        status = "✅" if check_result.available else "❌"
        version_str = f" ({check_result.version})" if check_result.version else ""
        required_str = " [required]" if check_result.required else " [optional]"

        typer.echo(f"  {status} {check_result.name}{version_str}{required_str}")
        if check_result.available and check_result.path:
            typer.echo(f"     └─ {check_result.path}")
        elif not check_result.available:
            typer.echo(f"     └─ {check_result.message}")

    typer.echo()

    if result.errors:
        typer.echo("❌ Preflight check FAILED")
        for error in result.errors:
            typer.echo(f"   • {error}")
        raise typer.Exit(1)

    typer.echo("✅ All preflight checks passed")
    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize Vigil configuration.

    Creates .vigil/config.yaml with the default settings.
    """
    vigil_dir = Path(".vigil")
    vigil_dir.mkdir(exist_ok=True)

    config_file = vigil_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config())
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ Vigil configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
