from flask import Blueprint, jsonify, request

from posadmin.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales/daily")
def daily_sales_report():
    try:
        rows = reporting_service.daily_sales_report(
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify({"rows": rows}), 200
    except reporting_service.ReportError as exc:
        return jsonify(exc.to_dict()), 400


@reports_bp.get("/sales/monthly")
def monthly_sales_report():
    try:
        report = reporting_service.monthly_sales_report(
            year=request.args.get("year", type=int),
            month=request.args.get("month", type=int),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify(exc.to_dict()), 400


@reports_bp.get("/profit-loss/daily")
def daily_profit_loss_report():
    try:
        rows = reporting_service.daily_profit_loss_report(
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify({"rows": rows}), 200
    except reporting_service.ReportError as exc:
        return jsonify(exc.to_dict()), 400


@reports_bp.get("/profit-loss/monthly")
def monthly_profit_loss_report():
    try:
        report = reporting_service.monthly_profit_loss_report(
            year=request.args.get("year", type=int),
            month=request.args.get("month", type=int),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify(exc.to_dict()), 400


@reports_bp.get("/stock")
def stock_report():
    return jsonify(reporting_service.stock_report()), 200
