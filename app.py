"""
Trial Balance Statement Builder JSON API.

Projects hold the classified entries of one uploaded trial balance.  The
upload flow is: preview the file's column mapping, upload with the
(possibly corrected) mapping, review classifications, then view or export
the statements.

Every response is ``{"success": true, "data": ...}`` or
``{"success": false, "error": "..."}``.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, current_app, request, send_file
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from trial_balance.config import PipelineConfig
from trial_balance.logging_setup import configure_logging, get_logger
from trial_balance.normalizer import AmountNormalizer
from trial_balance.pipeline import TrialBalancePipeline
from trial_balance.renderers import ExcelReportRenderer, PdfReportRenderer
from trial_balance.schema import (
    Classification,
    ColumnMapping,
    ReportSection,
    classification_options,
)
from trial_balance.sources import read_upload
from trial_balance.store import EntryNotFoundError, EntryStore, ProjectNotFoundError

logger = get_logger("app")

ALLOWED_EXTENSIONS = {"csv", "txt", "xlsx", "xlsm"}

_amounts = AmountNormalizer()


class BadRequest(ValueError):
    """Client input error reported as HTTP 400."""


# -------------------------------------------------------
# Helpers
# -------------------------------------------------------

def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def ok(data: Any = None, status: int = 200) -> Tuple[Dict[str, Any], int]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    return body, status


def fail(error: str, status: int, **extra: Any) -> Tuple[Dict[str, Any], int]:
    return {"success": False, "error": error, **extra}, status


def _store() -> EntryStore:
    return current_app.config["ENTRY_STORE"]


def _pipeline() -> TrialBalancePipeline:
    return current_app.config["PIPELINE"]


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


def _require(values: Dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if values.get(k) in (None, "")]
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")


def _project_id_arg() -> str:
    project_id = request.args.get("projectId")
    if not project_id:
        raise BadRequest("Project ID is required")
    return project_id


def _uploaded_file() -> Tuple[str, bytes]:
    if "file" not in request.files:
        raise BadRequest("No file uploaded")
    file = request.files["file"]
    if file.filename == "":
        raise BadRequest("No file selected")
    if not allowed_file(file.filename):
        raise BadRequest(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    return secure_filename(file.filename), file.read()


def _mapping_field(raw: Optional[str]) -> Optional[ColumnMapping]:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BadRequest(f"Invalid mapping JSON: {exc}") from None
    if not isinstance(data, dict):
        raise BadRequest("Mapping must be a JSON object")
    return ColumnMapping.from_dict(data)


def _decimal_field(values: Dict[str, Any], key: str) -> Optional[Decimal]:
    raw = values.get(key)
    if raw in (None, ""):
        return None
    value, warnings = _amounts.parse_amount(raw)
    if value is None:
        raise BadRequest(f"Invalid {key}: {'; '.join(warnings)}")
    return value


def _classification_field(
    values: Dict[str, Any],
) -> Tuple[Classification, Optional[ReportSection]]:
    try:
        classification = Classification(values.get("classification") or "unclassified")
        section_raw = values.get("reportSection")
        section = ReportSection(section_raw) if section_raw else None
    except ValueError as exc:
        raise BadRequest(str(exc)) from None
    return classification, section


def _period_end(raw: Any) -> date:
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        raise BadRequest(f"Invalid periodEnd: {raw!r}") from None


# -------------------------------------------------------
# Application factory
# -------------------------------------------------------

def create_app(
    store: Optional[EntryStore] = None,
    pipeline: Optional[TrialBalancePipeline] = None,
) -> Flask:
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024
    app.config["ENTRY_STORE"] = store or EntryStore()
    app.config["PIPELINE"] = pipeline or TrialBalancePipeline(
        PipelineConfig(log_level=logging.INFO)
    )
    configure_logging(level=app.config["PIPELINE"].config.log_level)

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValueError)
    def handle_bad_request(exc: ValueError):
        return fail(str(exc), 400)

    @app.errorhandler(ProjectNotFoundError)
    @app.errorhandler(EntryNotFoundError)
    def handle_not_found(exc: LookupError):
        return fail(str(exc.args[0]) if exc.args else "Not found", 404)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return fail(exc.description or exc.name, exc.code or 500)
        logger.exception("API Error")
        return fail(str(exc), 500)


def _register_routes(app: Flask) -> None:

    # ---------------------------------------------------
    # Health
    # ---------------------------------------------------

    @app.route("/api/health", methods=["GET"])
    def api_health():
        return {
            "status": "online",
            "version": "1.0.0",
            "classifications": classification_options(),
        }, 200

    # ---------------------------------------------------
    # Projects
    # ---------------------------------------------------

    @app.route("/api/projects", methods=["GET"])
    def list_projects():
        store = _store()
        data = []
        for p in store.list_projects():
            d = p.to_dict()
            d["entryCount"] = store.entry_count(p.project_id)
            data.append(d)
        return ok(data)

    @app.route("/api/projects", methods=["POST"])
    def create_project():
        body = _json_body()
        _require(body, "name", "companyName", "periodEnd")
        project = _store().create_project(
            name=str(body["name"]),
            company_name=str(body["companyName"]),
            period_end=_period_end(body["periodEnd"]),
        )
        return ok(project.to_dict(), 201)

    # ---------------------------------------------------
    # Upload flow
    # ---------------------------------------------------

    @app.route("/api/mapping", methods=["POST"])
    def preview_mapping():
        filename, data = _uploaded_file()
        table = read_upload(filename, data)
        return ok(_pipeline().preview(table.headers, table.rows))

    @app.route("/api/upload", methods=["POST"])
    def upload_entries():
        project_id = request.form.get("projectId")
        if not project_id:
            raise BadRequest("Project ID is required")
        _store().get_project(project_id)

        filename, data = _uploaded_file()
        mapping = _mapping_field(request.form.get("mapping"))
        table = read_upload(filename, data)

        result = _pipeline().ingest(table.headers, table.rows, mapping)
        if not result.success:
            return fail(
                "; ".join(result.validation_errors),
                400,
                mapping=result.mapping.to_dict(),
            )

        count = _store().replace_entries(project_id, result.entries)
        logger.info("Upload %s → project %s: %d entries", filename, project_id, count)
        return ok({
            "count": count,
            "mapping": result.mapping.to_dict(),
            "skipped": result.skipped,
            "suggestions": [s.to_dict() for s in result.suggestions],
            "warnings": result.validation_warnings,
        })

    # ---------------------------------------------------
    # Entries
    # ---------------------------------------------------

    @app.route("/api/entries", methods=["GET"])
    def list_entries():
        entries = _store().list_entries(_project_id_arg())
        return ok([e.to_dict() for e in entries])

    @app.route("/api/entries", methods=["POST"])
    def add_entry():
        body = _json_body()
        _require(body, "projectId", "accountCode", "accountName")
        classification, section = _classification_field(body)
        entry = _store().add_manual_entry(
            project_id=str(body["projectId"]),
            account_code=str(body["accountCode"]),
            account_name=str(body["accountName"]),
            amount=_decimal_field(body, "amount") or Decimal("0"),
            adjustments=_decimal_field(body, "adjustments"),
            classification=classification,
            report_section=section,
        )
        return ok(entry.to_dict(), 201)

    @app.route("/api/entries", methods=["PUT"])
    def update_entries():
        body = _json_body()
        store = _store()

        if "updates" in body:
            updates = body["updates"]
            if not isinstance(updates, list):
                raise BadRequest("Updates array is required")
            staged: List[Tuple[str, Classification, Optional[ReportSection]]] = []
            for u in updates:
                if not isinstance(u, dict):
                    raise BadRequest("Each update must be a JSON object")
                _require(u, "id")
                staged.append((str(u["id"]), *_classification_field(u)))
            updated = store.update_classifications(staged)
            return ok([e.to_dict() for e in updated])

        _require(body, "id")
        classification, section = _classification_field(body)
        entry = store.update_classification(str(body["id"]), classification, section)
        return ok(entry.to_dict())

    @app.route("/api/entries", methods=["DELETE"])
    def delete_entry():
        entry_id = request.args.get("id")
        if not entry_id:
            raise BadRequest("Entry ID is required")
        _store().delete_entry(entry_id)
        return ok()

    # ---------------------------------------------------
    # Classification review
    # ---------------------------------------------------

    @app.route("/api/classify", methods=["GET"])
    def classification_review():
        project_id = _project_id_arg()
        entries = _store().list_entries(project_id)
        pipeline = _pipeline()
        return ok({
            "entries": [e.to_dict() for e in entries],
            "summary": pipeline.build_reports(entries).summary,
            "suggestions": [s.to_dict() for s in pipeline.suggest(entries)],
            "options": classification_options(),
        })

    @app.route("/api/classify", methods=["POST"])
    def rerun_classification():
        body = _json_body()
        _require(body, "projectId")
        store = _store()
        project_id = str(body["projectId"])

        # Manual classifications are kept.
        updated = store.reclassify_entries(project_id, _pipeline().reclassify)

        summary = _pipeline().build_reports(store.list_entries(project_id)).summary
        return ok({"updated": updated, "summary": summary})

    # ---------------------------------------------------
    # Reports
    # ---------------------------------------------------

    @app.route("/api/reports", methods=["GET"])
    def reports():
        project_id = _project_id_arg()
        store = _store()
        project = store.get_project(project_id)
        output = _pipeline().build_reports(store.list_entries(project_id))
        data = output.to_dict()
        data["project"] = project.to_dict()
        return ok(data)

    @app.route("/api/export/excel", methods=["GET"])
    def export_excel():
        return _export(ExcelReportRenderer())

    @app.route("/api/export/pdf", methods=["GET"])
    def export_pdf():
        return _export(PdfReportRenderer())


def _export(renderer: Any):
    project_id = _project_id_arg()
    store = _store()
    project = store.get_project(project_id)
    output = _pipeline().build_reports(store.list_entries(project_id))
    report = renderer.render(project, output.balance_sheet, output.income_statement)
    return send_file(
        BytesIO(report.content),
        mimetype=report.content_type,
        as_attachment=True,
        download_name=report.filename,
    )


app = create_app()


if __name__ == "__main__":
    print("=" * 60)
    print("Trial Balance Server Running")
    print("http://localhost:5000")
    print("=" * 60)

    app.run(host="0.0.0.0", port=5000, debug=True)
