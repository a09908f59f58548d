"""
Reports API Routes - Financial summary and its Excel export
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from datetime import date, datetime
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from sahl.core.database import get_db
from sahl.core.security import get_current_user, PermissionChecker, resolve_branch_scope
from sahl.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def _build_summary(db: Session, current_user, branch_id: int, start_date: date, end_date: date) -> dict:
    # Default to current month if no dates provided
    if not start_date:
        start_date = date.today().replace(day=1)
    if not end_date:
        end_date = date.today()

    try:
        summary = ReportService(db).get_summary(
            branch_id=resolve_branch_scope(current_user, branch_id),
            start_date=start_date,
            end_date=end_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "period": {
            "start_date": summary["start_date"].isoformat(),
            "end_date": summary["end_date"].isoformat(),
        },
        "branch_id": summary["branch_id"],
        "summary": {
            "revenue_count": summary["revenue_count"],
            "total_revenue": float(summary["total_revenue"]),
            "total_discount": float(summary["total_discount"]),
            "total_cash": float(summary["total_cash"]),
            "total_network": float(summary["total_network"]),
            "expense_count": summary["expense_count"],
            "total_expenses": float(summary["total_expenses"]),
            "net_profit": float(summary["net_profit"]),
        },
        "expenses_by_category": [
            {"category": category, "amount": float(amount)}
            for category, amount in sorted(summary["expenses_by_category"].items())
        ],
        "expenses_by_payment_method": {
            method: float(amount) for method, amount in summary["expenses_by_payment_method"].items()
        },
        "revenue_by_branch": [
            {"branch": code, "amount": float(amount)}
            for code, amount in sorted(summary["revenue_by_branch"].items())
        ],
        "revenue_by_employee": [
            {"employee_name": name, "amount": float(amount)}
            for name, amount in sorted(summary["revenue_by_employee"].items())
        ],
    }


@router.get("/summary", dependencies=[Depends(PermissionChecker("reports", "view"))])
async def get_summary_report(
    branch_id: int = None,
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Revenue, expenses and net profit for a period"""
    return _build_summary(db, current_user, branch_id, start_date, end_date)


@router.get("/summary/export", dependencies=[Depends(PermissionChecker("reports", "view"))])
async def export_summary_report(
    branch_id: int = None,
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Financial summary as an Excel workbook"""
    report = _build_summary(db, current_user, branch_id, start_date, end_date)

    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"

    # Styles
    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="1e40af", end_color="1e40af", fill_type="solid")
    title_font = Font(bold=True, size=14)
    total_font = Font(bold=True, size=10)
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    def write_table(start_row: int, headers, rows) -> int:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=start_row, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal='center')
            cell.border = thin_border
        row = start_row + 1
        for label, amount in rows:
            ws.cell(row=row, column=1, value=label).border = thin_border
            amount_cell = ws.cell(row=row, column=2, value=amount)
            amount_cell.number_format = '#,##0.00'
            amount_cell.alignment = Alignment(horizontal='right')
            amount_cell.border = thin_border
            row += 1
        return row + 1

    # Header
    ws['A1'] = "Financial Summary"
    ws['A1'].font = title_font
    ws.merge_cells('A1:B1')
    ws['A2'] = "Period:"
    ws['B2'] = f"{report['period']['start_date']} to {report['period']['end_date']}"
    ws['A3'] = "Generated:"
    ws['B3'] = datetime.now().strftime('%Y-%m-%d %H:%M')

    totals = report["summary"]
    row = write_table(5, ["Item", "Amount"], [
        ("Total Revenue", totals["total_revenue"]),
        ("Total Discount", totals["total_discount"]),
        ("Cash", totals["total_cash"]),
        ("Network", totals["total_network"]),
        ("Total Expenses", totals["total_expenses"]),
        ("Net Profit", totals["net_profit"]),
    ])
    ws.cell(row=row - 2, column=1).font = total_font

    row = write_table(row, ["Expense Category", "Amount"], [
        (item["category"], item["amount"]) for item in report["expenses_by_category"]
    ])
    row = write_table(row, ["Branch", "Revenue"], [
        (item["branch"], item["amount"]) for item in report["revenue_by_branch"]
    ])
    write_table(row, ["Employee", "Revenue"], [
        (item["employee_name"], item["amount"]) for item in report["revenue_by_employee"]
    ])

    # Adjust column widths
    for col, width in enumerate([30, 18], 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    # Save to buffer
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    filename = f"summary_{report['period']['start_date']}_{report['period']['end_date']}.xlsx"

    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
