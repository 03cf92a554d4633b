"""Presentation of a finished run: plain text or JSON."""

from __future__ import annotations

import json
from typing import Any

from .models import Category
from .verification import VerificationReport


def render_text(report: VerificationReport, *, stats: bool = False) -> str:
    summary = report.summary
    lines = [
        f"Total commands: {summary.total}",
        "",
        "Command breakdown:",
        f"   Safe: {summary.safe}",
        f"   Conditional: {summary.conditional}",
        f"   Dangerous: {summary.dangerous}",
        f"   Unknown: {summary.unknown}",
    ]
    if summary.skipped:
        lines.append(f"   Skipped: {summary.skipped}")

    lines += [
        "",
        "System availability:",
        f"   Available: {summary.available}",
        f"   Not available: {summary.unavailable}",
    ]

    if stats:
        cache = summary.cache
        lines += [
            "",
            "Cache stats:",
            f"   Hit rate: {summary.cache_hit_rate}% ({cache.hits}/{summary.total})",
            f"   Hits: {cache.hits}",
            f"   Misses: {cache.misses}",
            f"   Revalidated after changes: {cache.revalidated}",
        ]
        if cache.corrupted or cache.repaired:
            lines += [
                f"   Corrupted entries repaired: {cache.corrupted}",
                f"   Rebuilt after repair: {cache.repaired}",
            ]
        lines.append(f"   Duration: {report.duration_ms / 1000:.1f}s")
        if summary.changed_files:
            lines += ["", "Changed files:"]
            lines += [f"   {path}" for path in summary.changed_files]

    missing = [
        r
        for r in report.results
        if not r.validation.available and r.validation.category is not Category.SKIP
    ]
    if missing:
        lines += ["", "Commands not found on this system:"]
        for result in missing:
            lines.append(f"   x {result.command}")
            if result.validation.suggestion:
                lines.append(f"     hint: {result.validation.suggestion}")

    return "\n".join(lines)


def report_to_dict(report: VerificationReport) -> dict[str, Any]:
    return {
        "summary": report.summary.to_dict(),
        "durationMs": report.duration_ms,
        "markdownFiles": list(report.markdown_files),
        "commit": report.state.current_commit,
        "results": [result.to_dict() for result in report.results],
    }


def render_json(report: VerificationReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False)
