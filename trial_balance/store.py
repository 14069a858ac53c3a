"""
In-memory entry store.

Holds projects and their classified entries for the web app.  Uploads
replace a project's entries wholesale; the replacement runs under a
per-project lock so two concurrent uploads never interleave their writes.
Readers always receive immutable ``ClassifiedEntry`` values.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from trial_balance.logging_setup import get_logger
from trial_balance.schema import (
    Classification,
    ClassifiedEntry,
    ProjectInfo,
    ReportSection,
    to_decimal,
)

logger = get_logger("store")


class ProjectNotFoundError(LookupError):
    pass


class EntryNotFoundError(LookupError):
    pass


def _new_id() -> str:
    return uuid.uuid4().hex


class EntryStore:
    """Thread-safe project / entry registry."""

    def __init__(self) -> None:
        self._projects: Dict[str, ProjectInfo] = {}
        self._entries: Dict[str, List[ClassifiedEntry]] = {}
        # entry id → owning project id
        self._owners: Dict[str, str] = {}
        self._registry_lock = threading.Lock()
        self._project_locks: Dict[str, threading.Lock] = {}

    # ------------------------------------------------------------------ #
    # Projects
    # ------------------------------------------------------------------ #

    def create_project(self, name: str, company_name: str, period_end: date) -> ProjectInfo:
        project = ProjectInfo(
            project_id=_new_id(),
            name=name,
            company_name=company_name,
            period_end=period_end,
        )
        with self._registry_lock:
            self._projects[project.project_id] = project
            self._entries[project.project_id] = []
            self._project_locks[project.project_id] = threading.Lock()
        logger.info("Created project %s (%s)", project.project_id, company_name)
        return project

    def get_project(self, project_id: str) -> ProjectInfo:
        try:
            return self._projects[project_id]
        except KeyError:
            raise ProjectNotFoundError(f"Project not found: {project_id}") from None

    def list_projects(self) -> List[ProjectInfo]:
        return list(self._projects.values())

    def entry_count(self, project_id: str) -> int:
        self.get_project(project_id)
        return len(self._entries[project_id])

    def _lock_for(self, project_id: str) -> threading.Lock:
        self.get_project(project_id)
        return self._project_locks[project_id]

    # ------------------------------------------------------------------ #
    # Entries
    # ------------------------------------------------------------------ #

    def replace_entries(
        self, project_id: str, entries: Iterable[ClassifiedEntry]
    ) -> int:
        """Atomically swap all entries of a project; returns the new count."""
        fresh = [replace(e, entry_id=_new_id(), is_manual=False) for e in entries]
        with self._lock_for(project_id):
            with self._registry_lock:
                for old in self._entries[project_id]:
                    self._owners.pop(old.entry_id, None)
                for e in fresh:
                    self._owners[e.entry_id] = project_id
                self._entries[project_id] = fresh
        logger.info("Replaced entries of project %s: %d stored", project_id, len(fresh))
        return len(fresh)

    def list_entries(self, project_id: str) -> List[ClassifiedEntry]:
        """All entries of a project ordered by account code."""
        self.get_project(project_id)
        return sorted(self._entries[project_id], key=lambda e: e.account_code)

    def get_entry(self, entry_id: str) -> ClassifiedEntry:
        with self._registry_lock:
            project_id, index = self._locate(entry_id)
            return self._entries[project_id][index]

    def update_classification(
        self,
        entry_id: str,
        classification: Classification,
        report_section: Optional[ReportSection] = None,
    ) -> ClassifiedEntry:
        """Reclassify one entry; the section defaults to the classification's."""
        return self.update_classifications([(entry_id, classification, report_section)])[0]

    def update_classifications(
        self,
        updates: Sequence[Tuple[str, Classification, Optional[ReportSection]]],
    ) -> List[ClassifiedEntry]:
        """Apply several reclassifications; all of them or none.

        Lookup and write happen under one lock, so an upload that replaces
        the entries in between cannot receive the update.

        Raises
        ------
        EntryNotFoundError
            If any id is unknown (nothing is changed).
        ValueError
            If any classification or section is invalid (nothing is changed).
        """
        with self._registry_lock:
            staged: List[Tuple[str, int, ClassifiedEntry]] = []
            for entry_id, classification, section in updates:
                project_id, index = self._locate(entry_id)
                current = self._entries[project_id][index]
                staged.append((
                    project_id,
                    index,
                    current.with_classification(
                        Classification(classification),
                        ReportSection(section) if section else None,
                    ),
                ))
            for project_id, index, updated in staged:
                self._entries[project_id][index] = updated
        logger.info("Updated %d classification(s)", len(staged))
        return [u for _, _, u in staged]

    def reclassify_entries(
        self,
        project_id: str,
        reclassify: Callable[[List[ClassifiedEntry]], List[ClassifiedEntry]],
    ) -> int:
        """Re-run ``reclassify`` over a project's entries in upload order.

        Parent inheritance depends on row order, so ``reclassify`` sees the
        entries as uploaded (manual entries last), not code-sorted.  Manual
        entries keep their classification.  The read and the write
        happen under the project and registry locks, so no upload or update
        lands in between.  Returns the number of entries rewritten.
        """
        with self._lock_for(project_id):
            with self._registry_lock:
                current = list(self._entries[project_id])
                result = reclassify(current)
                if len(result) != len(current):
                    raise ValueError("Reclassification must return one entry per input")
                self._entries[project_id] = [
                    old if old.is_manual else new for old, new in zip(current, result)
                ]
        updated = sum(1 for e in current if not e.is_manual)
        logger.info("Reclassified %d entries of project %s", updated, project_id)
        return updated

    def add_manual_entry(
        self,
        project_id: str,
        account_code: str,
        account_name: str,
        amount: Decimal,
        adjustments: Optional[Decimal] = None,
        classification: Classification = Classification.UNCLASSIFIED,
        report_section: Optional[ReportSection] = None,
    ) -> ClassifiedEntry:
        """Insert one hand-keyed entry; final amount = amount + adjustments."""
        amount = to_decimal(amount)
        adj = to_decimal(adjustments) if adjustments is not None else None
        classification = Classification(classification)
        entry = ClassifiedEntry(
            account_code=account_code.strip(),
            account_name=account_name.strip(),
            amount=amount,
            adjustments=adj,
            final_amount=amount + (adj or Decimal("0")),
            classification=classification,
            report_section=report_section or classification.default_section,
            entry_id=_new_id(),
            is_manual=True,
        )
        with self._lock_for(project_id):
            with self._registry_lock:
                self._entries[project_id].append(entry)
                self._owners[entry.entry_id] = project_id
        logger.info("Added manual entry %s to project %s", entry.account_code, project_id)
        return entry

    def delete_entry(self, entry_id: str) -> None:
        with self._registry_lock:
            project_id, index = self._locate(entry_id)
            del self._entries[project_id][index]
            del self._owners[entry_id]

    def _locate(self, entry_id: str) -> Tuple[str, int]:
        """Project and list index of ``entry_id``; caller holds ``_registry_lock``."""
        project_id = self._owners.get(entry_id)
        if project_id is None:
            raise EntryNotFoundError(f"Entry not found: {entry_id}")
        for i, e in enumerate(self._entries[project_id]):
            if e.entry_id == entry_id:
                return project_id, i
        raise EntryNotFoundError(f"Entry not found: {entry_id}")
