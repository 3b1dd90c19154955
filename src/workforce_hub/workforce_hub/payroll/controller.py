from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.exceptions import DomainError
from .model import PayrollReport, SalaryPeriod


def serialize_period(period: SalaryPeriod) -> dict:
    return {
        "id": period.period_id,
        "name": period.name,
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "status": period.status.value,
        "closed_by": period.closed_by,
        "closed_at": period.closed_at.isoformat() if period.closed_at else None,
    }


def serialize_report(report: PayrollReport) -> dict:
    return {
        "start": report.start.isoformat(),
        "end": report.end.isoformat(),
        "total_earnings": str(report.total_earnings),
        "lines": [
            {
                "user_id": line.user_id,
                "full_name": line.full_name,
                "total_hours": str(line.total_hours),
                "total_earnings": str(line.total_earnings),
                "approved_items": line.approved_items,
            }
            for line in report.lines
        ],
    }


def register(app: Flask, container) -> None:
    service = container.payroll_service

    @app.route("/payroll", methods=["GET"], endpoint="payroll_report")
    @login_required
    def payroll_report():
        try:
            ctx = current_context()
            period_id = request.args.get("period_id", type=int)
            if period_id:
                report = service.calculate_for_period(ctx, period_id=period_id)
            else:
                report = service.calculate(
                    ctx,
                    start=parse_iso_date(request.args.get("start"), "Start date"),
                    end=parse_iso_date(request.args.get("end"), "End date"),
                )
            return jsonify(serialize_report(report))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("payroll_report", e)

    @app.route("/payroll/periods", methods=["GET"], endpoint="list_salary_periods")
    @login_required
    def list_salary_periods():
        try:
            periods = service.list_periods(current_context())
            return jsonify({"periods": [serialize_period(p) for p in periods]})
        except DomainError as e:
            return error_response(e)

    @app.route("/payroll/periods", methods=["POST"], endpoint="create_salary_period")
    @login_required
    def create_salary_period():
        try:
            body = json_body()
            period_id = service.create_period(
                current_context(),
                name=body.get("name", ""),
                start=parse_iso_date(body.get("start_date"), "Start date"),
                end=parse_iso_date(body.get("end_date"), "End date"),
            )
            return jsonify({"id": period_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("create_salary_period", e)

    @app.route("/payroll/periods/<int:period_id>/toggle", methods=["POST"], endpoint="toggle_salary_period")
    @login_required
    def toggle_salary_period(period_id: int):
        try:
            body = json_body()
            period = service.toggle_period(current_context(), period_id=period_id, reason=body.get("reason"))
            return jsonify(serialize_period(period))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("toggle_salary_period", e)
