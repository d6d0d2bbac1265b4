"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich tables and panels) or
machines (--json). The formatter layer picks the mode from
:class:`OutputSettings`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from playerstore.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from playerstore.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON wins over quiet, quiet wins over the Rich renderers.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        exclude = None if settings.verbose else {"meta"}
        return result.model_dump_json(indent=2, exclude=exclude)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
