"""
Pipeline Orchestrator.

The central entry point that wires together every layer:

    Raw rows  →  ColumnMapper  →  RowExtractor  →  Classifier
              →  Validator  →  ClassificationReviewer  →  IngestOutput

and, for stored entries,

    Classified entries  →  StatementAggregator  →  ReportOutput

Usage
-----
>>> from trial_balance.pipeline import TrialBalancePipeline
>>>
>>> pipe = TrialBalancePipeline()
>>> result = pipe.ingest_csv("Account,Description,Prelim\\n700.100,Sales,-1000\\n")
>>> print(result.to_dict()["entries"][0]["classification"])
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from trial_balance.aggregator import StatementAggregator
from trial_balance.classifier import Classifier
from trial_balance.column_mapper import ColumnMapper
from trial_balance.config import PipelineConfig
from trial_balance.logging_setup import configure_logging, get_logger
from trial_balance.normalizer import AmountNormalizer
from trial_balance.review import ClassificationReviewer
from trial_balance.row_extractor import RawRow, RowExtractor
from trial_balance.schema import (
    ClassifiedEntry,
    ColumnMapping,
    IngestOutput,
    ReportOutput,
    ReviewSuggestion,
)
from trial_balance.sources import Source, SourceTable, read_csv, read_excel
from trial_balance.validator import Validator

logger = get_logger("pipeline")


class TrialBalancePipeline:
    """Orchestrates trial-balance ingestion and statement building.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults suit the common "Account / Description /
        Prelim / Adj / Rep" exports.
    extra_synonyms:
        Additional ``{account_name: classification}`` hints merged into the
        review dictionary.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        extra_synonyms: Optional[Dict[str, str]] = None,
    ) -> None:
        self._config = config or PipelineConfig()

        # Bootstrap logging before anything else
        configure_logging(level=self._config.log_level)

        # Construct layers
        self._normalizer = AmountNormalizer()
        self._mapper = ColumnMapper(config=self._config.mapping)
        self._extractor = RowExtractor(
            config=self._config.extraction,
            normalizer=self._normalizer,
        )
        self._classifier = Classifier(
            detail_code_prefix=self._config.extraction.detail_code_prefix,
        )
        self._validator = Validator(config=self._config.validation)
        self._reviewer = ClassificationReviewer(
            config=self._config.review,
            extra_synonyms=extra_synonyms,
        )
        self._aggregator = StatementAggregator()

        if self._config.custom_synonym_path:
            self._reviewer.load_custom_synonyms(self._config.custom_synonym_path)

        logger.info(
            "Pipeline initialised: synonyms=%d, review=%s, strict=%s",
            self._reviewer.synonym_count,
            self._config.review.enabled,
            self._config.strict_mode,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Mapping
    # ------------------------------------------------------------------ #

    def preview(
        self,
        headers: Sequence[str],
        rows: Sequence[RawRow],
        mapping: Optional[ColumnMapping] = None,
    ) -> Dict[str, Any]:
        """Headers, inferred (or supplied) mapping and the first few rows."""
        mapping = mapping or self._mapper.infer(headers)
        return {
            "headers": list(headers),
            "mapping": mapping.to_dict(),
            "missing": mapping.missing_required(),
            "preview": [dict(r) for r in rows[: self._config.extraction.preview_rows]],
            "rowCount": len(rows),
        }

    # ------------------------------------------------------------------ #
    # Convenience entry points (one per input format)
    # ------------------------------------------------------------------ #

    def ingest_csv(
        self, source: Source, mapping: Optional[ColumnMapping] = None
    ) -> IngestOutput:
        """Ingest from a CSV file path, CSV text or bytes."""
        return self.ingest_table(read_csv(source), mapping)

    def ingest_excel(
        self,
        source: Source,
        mapping: Optional[ColumnMapping] = None,
        sheet: Optional[str] = None,
    ) -> IngestOutput:
        """Ingest one worksheet of an .xlsx file."""
        return self.ingest_table(read_excel(source, sheet=sheet), mapping)

    def ingest_table(
        self, table: SourceTable, mapping: Optional[ColumnMapping] = None
    ) -> IngestOutput:
        return self.ingest(table.headers, table.rows, mapping)

    # ------------------------------------------------------------------ #
    # Core pipeline logic
    # ------------------------------------------------------------------ #

    def ingest(
        self,
        headers: Sequence[str],
        rows: Sequence[Mapping[str, Optional[str]]],
        mapping: Optional[ColumnMapping] = None,
    ) -> IngestOutput:
        """Map, extract, classify and validate one uploaded table.

        An incomplete mapping yields a failed output with no entries.

        Raises
        ------
        RuntimeError
            In ``strict_mode`` when the run produced validation errors.
        """
        mapping = mapping or self._mapper.infer(headers)

        mapping_report = self._validator.validate_mapping(mapping)
        if not mapping_report.is_valid:
            output = IngestOutput(
                mapping=mapping,
                validation_errors=mapping_report.errors,
                validation_warnings=mapping_report.warnings,
            )
            return self._finish(output)

        extraction = self._extractor.extract_with_report(rows, mapping)
        entries = self._classifier.classify(extraction.entries)
        report = self._validator.validate_entries(entries, extraction.parse_warnings)
        suggestions = self._reviewer.suggest(entries)

        output = IngestOutput(
            mapping=mapping,
            entries=entries,
            skipped=dict(extraction.skipped),
            suggestions=suggestions,
            validation_errors=report.errors,
            validation_warnings=report.warnings,
        )
        return self._finish(output)

    def _finish(self, output: IngestOutput) -> IngestOutput:
        logger.info(
            "Ingest complete: entries=%d, suggestions=%d, errors=%d, warnings=%d",
            len(output.entries),
            len(output.suggestions),
            len(output.validation_errors),
            len(output.validation_warnings),
        )

        if self._config.strict_mode and not output.success:
            raise RuntimeError(
                f"Strict mode: pipeline produced {len(output.validation_errors)} "
                f"validation error(s):\n" + "\n".join(output.validation_errors)
            )

        return output

    def reclassify(self, entries: Sequence[ClassifiedEntry]) -> List[ClassifiedEntry]:
        """Re-run the code rules over stored entries, keeping their order."""
        return self._classifier.reclassify(entries)

    def build_reports(self, entries: Sequence[ClassifiedEntry]) -> ReportOutput:
        """Both statements, the classification summary and entry warnings."""
        report = self._validator.validate_entries(entries)
        return ReportOutput(
            balance_sheet=self._aggregator.build_balance_sheet(entries),
            income_statement=self._aggregator.build_income_statement(entries),
            summary=self._aggregator.classification_summary(entries),
            validation_warnings=report.warnings,
        )

    # ------------------------------------------------------------------ #
    # Utility
    # ------------------------------------------------------------------ #

    def add_synonyms(self, mapping: Dict[str, str]) -> None:
        """Hot-add review synonyms after pipeline construction."""
        self._reviewer.add_synonyms(mapping)

    @property
    def synonym_count(self) -> int:
        return self._reviewer.synonym_count

    def suggest(self, entries: Sequence[ClassifiedEntry]) -> List[ReviewSuggestion]:
        """Review hints for the unclassified entries among ``entries``."""
        return self._reviewer.suggest(entries)
