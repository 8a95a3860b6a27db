# paytrack/routes/reports.py
import io

from flask import Blueprint, jsonify, request, send_file

from paytrack.routes.common import get_clock, get_store, query_date
from paytrack.services.report_service import ReportService

report_bp = Blueprint('report', __name__, url_prefix='/reports')


def report_filters() -> dict:
    return {
        "project_id": request.args.get('projectId', '').strip() or None,
        "date_from": query_date('dateFrom'),
        "date_to": query_date('dateTo'),
    }


@report_bp.route('/summary', methods=['GET'])
def summary():
    """财务汇总"""
    return jsonify(ReportService(get_store()).build_summary(**report_filters()).to_api())


@report_bp.route('/payments.xlsx', methods=['GET'])
def download_payments():
    """下载付款明细 Excel"""
    content = ReportService(get_store()).export_payments_excel(**report_filters())
    filename = f"payments_{get_clock().today().isoformat()}.xlsx"
    return send_file(
        io.BytesIO(content),
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name=filename,
    )
