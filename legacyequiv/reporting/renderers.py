"""Report renderers: markdown (the stable output contract), JSON, HTML and CSV.

Every markdown section is always present; empty lists render as ``_None_``
and missing field values render as empty text.
"""

import csv
import io
import json
from pathlib import Path
from typing import Callable, Dict, List
import logging

import markdown

from legacyequiv.config import REPORT_FORMATS, language_display_name
from legacyequiv.models import Category, Severity, ValidationStatus
from .report import ValidationReport

logger = logging.getLogger(__name__)


STATUS_MARKERS = {
    ValidationStatus.FULLY_EQUIVALENT: "[OK]",
    ValidationStatus.MOSTLY_EQUIVALENT: "[OK]",
    ValidationStatus.PARTIALLY_EQUIVALENT: "[!]",
    ValidationStatus.NOT_EQUIVALENT: "[X]",
    ValidationStatus.VALIDATION_FAILED: "[X]",
}

STATUS_DESCRIPTIONS = {
    ValidationStatus.FULLY_EQUIVALENT: "All functionality correctly converted with full equivalence",
    ValidationStatus.MOSTLY_EQUIVALENT: "Minor differences that don't affect core functionality",
    ValidationStatus.PARTIALLY_EQUIVALENT: "Some significant differences but main features work",
    ValidationStatus.NOT_EQUIVALENT: "Critical functionality missing or incorrect",
    ValidationStatus.VALIDATION_FAILED: "Validation could not be completed",
}

CSV_COLUMNS = [
    "severity", "category", "legacy_unit", "target_unit", "subject",
    "description", "expected_behavior", "actual_behavior", "impact", "suggested_fix",
]

NONE_PLACEHOLDER = "_None_"


def _line(label: str, value) -> str:
    return f"- **{label}:** {value if value is not None else ''}".rstrip()


def _difference_block(index: int, difference) -> List[str]:
    return [
        f"### {index}. [{difference.severity.value}] {difference.category.value}",
        "",
        _line("Legacy Unit", difference.legacy_unit),
        _line("Target Unit", difference.target_unit),
        _line("Description", difference.description),
        _line("Expected", difference.expected_behavior),
        _line("Actual", difference.actual_behavior),
        _line("Impact", difference.impact),
        _line("Fix", difference.suggested_fix),
        "",
    ]


def render_markdown(report: ValidationReport) -> str:
    """Render the report in the stable markdown format"""
    language = language_display_name(report.target_language)
    md = []

    md.append(f"# {language} Conversion Validation Report")
    md.append("")
    md.append(f"**Generated:** {report.timestamp:%Y-%m-%d %H:%M:%S} UTC")
    md.append("")

    # Summary
    md.append("## Validation Summary")
    md.append("")
    md.append(f"- **Accuracy Score:** {report.accuracy_score:.1f}%")
    md.append(f"- **Status:** {report.status.value}")
    md.append(f"- **Legacy Units Analyzed:** {report.legacy_units_analyzed}")
    md.append(f"- **{language} Units Analyzed:** {report.target_units_analyzed}")
    md.append("")
    md.append(f"{STATUS_MARKERS[report.status]} **{report.status.value}** - "
              f"{STATUS_DESCRIPTIONS[report.status]}")
    md.append("")

    md.append("### Issues Found")
    md.append("")
    md.append("| Severity | Count |")
    md.append("|----------|-------|")
    for severity, count in report.severity_counts.items():
        md.append(f"| {severity} | {count} |")
    md.append("")

    md.append("### Issues by Category")
    md.append("")
    md.append("| Category | Count |")
    md.append("|----------|-------|")
    for category, count in report.category_counts.items():
        md.append(f"| {category} | {count} |")
    md.append("")

    # Units
    md.append("## Unit Results")
    md.append("")
    if report.unit_results:
        md.append("| Legacy Unit | Target Unit | Score | Status | Differences |")
        md.append("|-------------|-------------|-------|--------|-------------|")
        for unit in report.unit_results:
            md.append(f"| {unit.legacy_unit} | {unit.target_unit} | {unit.accuracy_score:.1f}% | "
                      f"{unit.status.value} | {unit.difference_count} |")
    else:
        md.append(NONE_PLACEHOLDER)
    md.append("")

    # Differences
    md.append("## Differences")
    md.append("")
    if report.differences:
        for i, difference in enumerate(report.differences, 1):
            md.extend(_difference_block(i, difference))
    else:
        md.append(NONE_PLACEHOLDER)
        md.append("")

    md.append("## Load Failures")
    md.append("")
    if report.load_failures:
        for i, failure in enumerate(report.load_failures, 1):
            md.extend(_difference_block(i, failure))
    else:
        md.append(NONE_PLACEHOLDER)
        md.append("")

    md.extend(_detailed_analysis(report))

    md.append("## Correct Conversions")
    md.append("")
    if report.correct_conversions:
        for conversion in report.correct_conversions:
            md.append(f"- {conversion}")
    else:
        md.append(NONE_PLACEHOLDER)
    md.append("")

    md.append("## Recommendations")
    md.append("")
    if report.recommendations:
        for i, recommendation in enumerate(report.recommendations, 1):
            md.append(f"### Recommendation {i}")
            md.append("")
            md.append("```text")
            md.append(recommendation)
            md.append("```")
            md.append("")
    else:
        md.append(NONE_PLACEHOLDER)
        md.append("")

    return "\n".join(md)


def _detailed_analysis(report: ValidationReport) -> List[str]:
    """Per-category summary of the findings"""
    md = ["## Detailed Analysis", ""]
    for category in Category:
        findings = [d for d in report.differences if d.category == category]
        md.append(f"### {category.value}")
        md.append("")
        if not findings:
            md.append("No findings.")
            md.append("")
            continue

        by_severity = []
        for severity in Severity:
            count = sum(1 for d in findings if d.severity == severity)
            if count:
                by_severity.append(f"{severity.value}: {count}")
        units = sorted({d.legacy_unit for d in findings if d.legacy_unit})

        md.append(f"- **Findings:** {len(findings)} ({', '.join(by_severity)})")
        md.append(_line("Units Affected", ", ".join(units)))
        md.append("")
    return md


def render_json(report: ValidationReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def render_html(report: ValidationReport) -> str:
    """Markdown report converted to a standalone HTML document"""
    body = markdown.markdown(render_markdown(report), extensions=["tables", "fenced_code"])
    title = f"{language_display_name(report.target_language)} Conversion Validation Report"
    return (
        "<!DOCTYPE html>\n"
        f"<html>\n<head>\n<meta charset=\"utf-8\">\n<title>{title}</title>\n</head>\n"
        f"<body>\n{body}\n</body>\n</html>\n"
    )


def render_csv(report: ValidationReport) -> str:
    """One row per difference"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for difference in report.differences:
        data = difference.to_dict()
        writer.writerow([data[column] for column in CSV_COLUMNS])
    return buffer.getvalue()


RENDERERS: Dict[str, Callable[[ValidationReport], str]] = {
    "markdown": render_markdown,
    "json": render_json,
    "html": render_html,
    "csv": render_csv,
}


def render(report: ValidationReport, fmt: str = "markdown") -> str:
    """Render a report in one of REPORT_FORMATS"""
    if fmt not in RENDERERS:
        raise ValueError(f"Unknown report format {fmt!r}; expected one of {REPORT_FORMATS}")
    return RENDERERS[fmt](report)


def write_report(report: ValidationReport, output_path: Path, fmt: str = "markdown") -> str:
    """Render and save a report; returns the rendered content"""
    content = render(report, fmt)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(content)
    logger.info(f"Validation report saved to: {output_path}")
    return content
