"""CLI interface for legacyequiv"""

import click
import json
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple
import logging

from tqdm import tqdm

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from legacyequiv import __version__
from legacyequiv.cache import CachedValidator, ReportCache
from legacyequiv.config import ENGINE_DEFAULTS, REPORT_FORMATS, language_display_name, load_config
from legacyequiv.engine import ValidationEngine, diagnostic_note
from legacyequiv.loader import document_schema
from legacyequiv.reporting import ValidationReport, render, write_report


FORMAT_EXTENSIONS = {
    "markdown": "md",
    "json": "json",
    "html": "html",
    "csv": "csv",
}


@click.group()
@click.version_option(version=__version__)
def main():
    """legacyequiv - Equivalence validation of legacy-to-modern conversions

    Compares a legacy program's semantic model with the models of its
    generated target artifacts and reports an accuracy score, classified
    differences and remediation recommendations.
    """
    pass


def _settings(config_path: Optional[str], verbose: bool) -> Tuple[Dict, Optional[str]]:
    """Engine settings, plus the configuration error if the file was rejected"""
    error = None
    try:
        settings = load_config(Path(config_path) if config_path else None)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"[ERROR] {e}", err=True)
        settings, error = dict(ENGINE_DEFAULTS), str(e)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else settings["log_level"])
    return settings, error


def _config_failure(language: str, error: str) -> ValidationReport:
    """ValidationFailed report for a run whose configuration was rejected"""
    note = diagnostic_note("Configuration loading failed", error)
    return ValidationEngine().failed_report(language, note)


def _validator(settings: Dict, cache_dir: Optional[str]):
    engine = ValidationEngine(max_workers=settings["max_workers"])
    cache_dir = cache_dir or settings["cache_dir"]
    if cache_dir:
        return CachedValidator(engine, ReportCache(cache_dir))
    return engine


def _summary(report: ValidationReport) -> None:
    marker = "[OK]" if report.exit_code == 0 else ("[!]" if report.exit_code == 1 else "[X]")
    language = language_display_name(report.target_language)
    click.echo(
        f"{marker} {language}: {report.accuracy_score:.1f}% ({report.status.value}) - "
        f"{len(report.differences)} differences, {len(report.load_failures)} load failures",
        err=True,
    )


def _parse_target(ctx, param, values) -> Tuple[Tuple[str, str], ...]:
    parsed = []
    for value in values:
        language, sep, path = value.partition("=")
        if not sep or not language.strip() or not path.strip():
            raise click.BadParameter(f"expected LANG=PATH, got {value!r}")
        parsed.append((language.strip().lower(), path.strip()))
    return tuple(parsed)


@main.command()
@click.option("--legacy", required=True, type=click.Path(), help="Legacy semantic model (JSON or YAML)")
@click.option("--target", required=True, type=click.Path(), help="Target semantic model (JSON or YAML)")
@click.option("--lang", required=True, help="Target language identifier (e.g., java, csharp)")
@click.option("--output", type=click.Path(), help="Write the report to this file instead of stdout")
@click.option("--format", "fmt", type=click.Choice(REPORT_FORMATS), default=None,
              help="Report format (default: from config, markdown)")
@click.option("--config", "config_path", type=click.Path(), help="YAML configuration file")
@click.option("--cache-dir", type=click.Path(), help="Reuse reports for unchanged models")
@click.option("--verbose", is_flag=True, default=False, help="Log every pipeline stage")
def validate(legacy: str, target: str, lang: str, output: Optional[str], fmt: Optional[str],
             config_path: Optional[str], cache_dir: Optional[str], verbose: bool):
    """Validate one target model against the legacy model

    Exit code: 0 FullyEquivalent/MostlyEquivalent, 1 PartiallyEquivalent/NotEquivalent,
    2 ValidationFailed.
    """
    settings, config_error = _settings(config_path, verbose)
    fmt = fmt or settings["report_format"]
    lang = lang.strip().lower()

    if config_error:
        report = _config_failure(lang, config_error)
    else:
        report = _validator(settings, cache_dir).validate_paths(legacy, target, lang)

    if output:
        write_report(report, Path(output), fmt)
        click.echo(f"[OK] Report saved to: {output}", err=True)
    else:
        click.echo(render(report, fmt))

    _summary(report)
    sys.exit(report.exit_code)


@main.command("validate-all")
@click.option("--legacy", required=True, type=click.Path(), help="Legacy semantic model (JSON or YAML)")
@click.option("--target", "targets", required=True, multiple=True, callback=_parse_target,
              help="LANG=PATH, repeatable (e.g., --target java=policy_java.yaml)")
@click.option("--output-dir", type=click.Path(), help="Write one report per language here")
@click.option("--format", "fmt", type=click.Choice(REPORT_FORMATS), default=None,
              help="Report format (default: from config, markdown)")
@click.option("--config", "config_path", type=click.Path(), help="YAML configuration file")
@click.option("--cache-dir", type=click.Path(), help="Reuse reports for unchanged models")
@click.option("--verbose", is_flag=True, default=False, help="Log every pipeline stage")
def validate_all(legacy: str, targets: Tuple[Tuple[str, str], ...], output_dir: Optional[str],
                 fmt: Optional[str], config_path: Optional[str], cache_dir: Optional[str],
                 verbose: bool):
    """Validate several target languages against one legacy model

    Exit code is the worst of the per-language exit codes.
    """
    settings, config_error = _settings(config_path, verbose)
    fmt = fmt or settings["report_format"]

    reports = []
    if config_error:
        reports = [_config_failure(language, config_error) for language, _ in targets]
    else:
        validator = _validator(settings, cache_dir)
        for language, path in tqdm(targets, desc="Validating", unit="target", file=sys.stderr):
            reports.append(validator.validate_paths(legacy, path, language))

    for report in reports:
        if output_dir:
            output_path = Path(output_dir) / f"{report.target_language}_validation_report.{FORMAT_EXTENSIONS[fmt]}"
            write_report(report, output_path, fmt)
            click.echo(f"[OK] Report saved to: {output_path}", err=True)
        else:
            click.echo(render(report, fmt))
        _summary(report)

    sys.exit(max(report.exit_code for report in reports))


@main.command()
@click.option("--kind", required=True, type=click.Choice(["legacy", "target"]),
              help="Which input document to describe")
def schema(kind: str):
    """Print the JSON schema of an input model document"""
    click.echo(json.dumps(document_schema(kind), indent=2))


if __name__ == "__main__":
    main()
