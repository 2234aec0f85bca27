from flask import Blueprint, Response, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
@require_permission("VIEW_REPORTS")
def summary_report():
    date_range = request.args.get("range", "month")
    try:
        result = reporting_service.summary(date_range)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    if result is None:
        return jsonify({"error": "Failed to build report"}), 500
    return jsonify(result), 200


@reports_bp.get("/chart/<report_type>")
@require_auth
@require_permission("VIEW_REPORTS")
def chart_report(report_type: str):
    date_range = request.args.get("range", "month")
    try:
        series = reporting_service.chart_series(report_type, date_range)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    if series is None:
        return jsonify({"error": "Failed to build report"}), 500
    return jsonify({"type": report_type, "range": date_range, "series": series}), 200


@reports_bp.get("/export/<report_type>")
@require_auth
@require_permission("EXPORT_REPORTS")
def export_report(report_type: str):
    date_range = request.args.get("range", "month")
    try:
        exported = reporting_service.export_csv(report_type, date_range)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    if exported is None:
        return jsonify({"error": "Failed to export report"}), 500
    filename, content = exported
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
