"""Export planned imports as HCL or JSON.

Exporters only produce text. Persisting it is the caller's decision.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from importwright.exporter.emitter import ConfigEmitter
from importwright.exporter.hcl import render_hcl

if TYPE_CHECKING:
    from importwright.planner import ImportReport

FORMATS = ("hcl", "json")


def export_report(report: ImportReport, fmt: str = "hcl", include_import_blocks: bool = True) -> str:
    """Render a planning report in the given format. Returns the rendered string."""
    fmt = fmt.lower().strip()

    if fmt == "hcl":
        return report.to_hcl(include_import_blocks=include_import_blocks)

    if fmt == "json":
        return json.dumps(report.to_dict(), indent=2, default=str)

    raise ValueError(f"Unknown export format: {fmt!r}. Supported: {', '.join(FORMATS)}")


__all__ = ["ConfigEmitter", "FORMATS", "export_report", "render_hcl"]
