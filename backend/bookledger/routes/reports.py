# Overview: Flask API routes for balance sheets, monthly reports and other ledger reports.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_account
from ..errors import FetchFailure
from ..services import reporting_service, snapshot_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _unavailable(exc: FetchFailure):
    return jsonify({"error": str(exc), "details": exc.details}), 503


@reports_bp.get("/balance-sheet")
@require_account
def balance_sheet_report():
    as_of = request.args.get("as_of")
    try:
        return jsonify(reporting_service.balance_sheet(g.account_id, as_of)), 200
    except ValueError as exc:
        return jsonify({"error": f"Invalid as_of: {exc}"}), 400
    except FetchFailure as exc:
        return _unavailable(exc)


@reports_bp.get("/monthly")
@require_account
def monthly_report():
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)
    if not year or not month:
        return jsonify({"error": "year and month are required"}), 400

    try:
        return jsonify(reporting_service.monthly_report(g.account_id, year, month)), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except FetchFailure as exc:
        return _unavailable(exc)


@reports_bp.get("/cash-flow")
@require_account
def cash_flow_report():
    start = request.args.get("start")
    end = request.args.get("end")
    try:
        return jsonify(reporting_service.cash_flow_report(g.account_id, start, end)), 200
    except ValueError as exc:
        return jsonify({"error": f"Invalid date: {exc}"}), 400
    except FetchFailure as exc:
        return _unavailable(exc)


@reports_bp.get("/pending-receivables")
@require_account
def pending_receivables_report():
    as_of = request.args.get("as_of")
    try:
        return jsonify(reporting_service.pending_receivables(g.account_id, as_of)), 200
    except ValueError as exc:
        return jsonify({"error": f"Invalid as_of: {exc}"}), 400
    except FetchFailure as exc:
        return _unavailable(exc)


@reports_bp.get("/received-payments")
@require_account
def received_payments_report():
    start = request.args.get("start")
    end = request.args.get("end")
    try:
        return jsonify(reporting_service.received_payments(g.account_id, start, end)), 200
    except ValueError as exc:
        return jsonify({"error": f"Invalid date: {exc}"}), 400


@reports_bp.get("/closing-stock")
@require_account
def closing_stock_report():
    as_of = request.args.get("as_of")
    try:
        return jsonify(reporting_service.closing_stock_report(g.account_id, as_of)), 200
    except ValueError as exc:
        return jsonify({"error": f"Invalid as_of: {exc}"}), 400
    except FetchFailure as exc:
        return _unavailable(exc)


@reports_bp.get("/account-balances")
@require_account
def account_balances_report():
    try:
        return jsonify(snapshot_service.account_balances(g.account_id)), 200
    except FetchFailure as exc:
        return _unavailable(exc)


@reports_bp.get("/dashboard")
@require_account
def dashboard_report():
    try:
        return jsonify(reporting_service.dashboard_stats(g.account_id)), 200
    except FetchFailure as exc:
        return _unavailable(exc)
