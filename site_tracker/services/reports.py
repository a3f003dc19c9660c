from __future__ import annotations

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from site_tracker.schemas.trending import EntityTrend, TimingBreakdown, TrendReport
from site_tracker.services.trending import PerformanceStatus

TIER_TITLES = {
    PerformanceStatus.excellent.value: "Excellent",
    PerformanceStatus.good.value: "Good",
    PerformanceStatus.needs_improvement.value: "Needs Improvement",
    PerformanceStatus.problematic.value: "Problematic",
}


def _text(value: object) -> str:
    # Core PDF fonts only cover latin-1.
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _truncate_text(value: str, max_len: int = 24) -> str:
    if len(value) <= max_len:
        return value
    return f"{value[: max_len - 3]}..."


def _breakdown_line(counts: TimingBreakdown) -> str:
    return (
        f"Same day {counts.same_day} ({counts.same_day_rate:.1f}%) | "
        f"Next day {counts.next_day} ({counts.next_day_rate:.1f}%) | "
        f"2-7 days {counts.within_week} ({counts.within_week_only_rate:.1f}%) | "
        f"Late {counts.late} | No submission {counts.no_submission}"
    )


def _render_tiers(pdf: FPDF, title: str, trends: list[EntityTrend]) -> None:
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 8, title, ln=True)
    pdf.set_font("Helvetica", size=11)
    if not trends:
        pdf.cell(0, 6, "No data.", ln=True)
        pdf.ln(2)
        return
    for status, label in TIER_TITLES.items():
        members = [trend for trend in trends if trend.performance_status == status]
        if not members:
            continue
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 6, f"{label} ({len(members)})", ln=True)
        pdf.set_font("Helvetica", size=10)
        for trend in members:
            totals = trend.totals
            pdf.multi_cell(
                0,
                5,
                _text(
                    f"- {trend.entity_name}: {totals.total} visits, "
                    f"{totals.same_day_rate:.1f}% same day, {totals.within_week_rate:.1f}% within a week"
                ),
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )
    pdf.ln(2)


def render_trend_pdf(report: TrendReport) -> bytes:
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, "PMR Submission Trending", ln=True)
    pdf.set_font("Helvetica", size=11)
    pdf.cell(0, 6, f"Range: {report.start.isoformat()} to {report.end.isoformat()}", ln=True)
    pdf.cell(0, 6, _text(f"City: {report.city or 'All'}"), ln=True)
    pdf.cell(0, 6, _text(f"NFO: {report.nfo or 'All'}"), ln=True)
    pdf.cell(0, 6, f"Submission rule: {report.submission_policy.replace('_', ' ')}", ln=True)
    pdf.ln(4)

    summary = report.summary
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 8, "Summary", ln=True)
    pdf.set_font("Helvetica", size=11)
    pdf.cell(0, 6, f"Planned visits: {summary.total}", ln=True)
    if summary.total:
        pdf.multi_cell(0, 6, _breakdown_line(summary), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.cell(0, 6, f"Within a week (cumulative): {summary.within_week_rate:.1f}%", ln=True)
    else:
        pdf.cell(0, 6, "No planned visits in this range.", ln=True)
    pdf.ln(3)

    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 8, "Weekly Breakdown", ln=True)
    pdf.set_font("Helvetica", "B", 10)
    column_defs = [
        ("Week", 24),
        ("Dates", 44),
        ("Total", 16),
        ("Same", 16),
        ("Next", 16),
        ("2-7d", 16),
        ("Late", 16),
        ("None", 16),
        ("<=7d %", 20),
    ]
    for header, width in column_defs:
        pdf.cell(width, 7, header, border=1)
    pdf.ln()
    pdf.set_font("Helvetica", size=9)
    if report.weeks:
        for week in report.weeks:
            values = [
                _truncate_text(f"{week.year} {week.week_label}", 14),
                f"{week.start_date:%d %b} - {week.end_date:%d %b}",
                str(week.total),
                str(week.same_day),
                str(week.next_day),
                str(week.within_week),
                str(week.late),
                str(week.no_submission),
                f"{week.within_week_rate:.1f}",
            ]
            for (_, width), value in zip(column_defs, values):
                pdf.cell(width, 6, value, border=1)
            pdf.ln()
    else:
        pdf.cell(0, 7, "No weeks to list.", border=1, ln=True)
    pdf.ln(4)

    _render_tiers(pdf, "Area Performance", report.areas)
    _render_tiers(pdf, "NFO Performance", report.nfos)
    return _pdf_bytes(pdf)


def _pdf_bytes(pdf: FPDF) -> bytes:
    return bytes(pdf.output())
