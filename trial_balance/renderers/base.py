"""Shared renderer result type."""

from __future__ import annotations

import re
from dataclasses import dataclass

from trial_balance.schema import ProjectInfo


@dataclass(frozen=True)
class RenderedReport:
    content: bytes
    content_type: str
    filename: str


def report_filename(project: ProjectInfo, extension: str) -> str:
    """``<Company_Name>_Financial_Report.<ext>`` with non-alphanumerics replaced."""
    safe = re.sub(r"[^a-zA-Z0-9]", "_", project.company_name)
    return f"{safe}_Financial_Report.{extension}"
