from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
import calendar
import logging

from dateutil.relativedelta import relativedelta

from caseload.schemas.progress_report import ProgressReport, Quarter, ReportType
from caseload.utils.dates import DateLike, new_id, parse_date, to_iso_date, utc_now

logger = logging.getLogger(__name__)

SCHOOL_YEAR_START_MONTH = 9  # September 1
DUE_AFTER_QUARTER_END = timedelta(days=14)
DUE_BEFORE_ANNUAL_REVIEW = timedelta(days=21)
QUARTER_GRACE_PERIOD = relativedelta(months=3)


def school_year_start(anchor: date) -> int:
    """Calendar year in which the school year containing `anchor` began."""
    return anchor.year if anchor.month >= SCHOOL_YEAR_START_MONTH else anchor.year - 1


def school_year_quarters(iep_anchor_date: DateLike = None, reference_date: DateLike = None) -> List[Quarter]:
    """
    The four fixed quarters of a school year (Sep 1 - Aug 31).

    Args:
        iep_anchor_date: Date whose school year is used (e.g. the IEP date).
        reference_date: Fallback anchor when no IEP date is given; defaults to today.

    Returns:
        Q1 Sep-Nov, Q2 Dec-Feb, Q3 Mar-May, Q4 Jun-Aug, in order.
    """
    anchor = parse_date(iep_anchor_date) or parse_date(reference_date) or utc_now().date()
    year = school_year_start(anchor)
    feb_end = calendar.monthrange(year + 1, 2)[1]

    return [
        Quarter(start=date(year, 9, 1), end=date(year, 11, 30), quarter=1),
        Quarter(start=date(year, 12, 1), end=date(year + 1, 2, feb_end), quarter=2),
        Quarter(start=date(year + 1, 3, 1), end=date(year + 1, 5, 31), quarter=3),
        Quarter(start=date(year + 1, 6, 1), end=date(year + 1, 8, 31), quarter=4),
    ]


def quarterly_due_date(quarter_end: date, annual_review_date: Optional[date] = None) -> date:
    """Two weeks after the quarter ends, but never past three weeks before the annual review."""
    due = quarter_end + DUE_AFTER_QUARTER_END
    if annual_review_date is not None:
        cutoff = annual_review_date - DUE_BEFORE_ANNUAL_REVIEW
        if due > cutoff:
            due = cutoff
    return due


def _today(now: Optional[datetime]) -> date:
    return (now or utc_now()).date()


def _build_report(
    student_id: str,
    report_type: ReportType,
    period_start: date,
    period_end: date,
    due: date,
    now: datetime,
) -> ProgressReport:
    stamp = now.isoformat()
    return ProgressReport(
        id=new_id(),
        student_id=student_id,
        report_type=report_type,
        period_start=to_iso_date(period_start),
        period_end=to_iso_date(period_end),
        due_date=to_iso_date(due),
        scheduled_date=stamp,
        status="overdue" if due < now.date() else "scheduled",
        date_created=stamp,
        date_updated=stamp,
    )


def schedule_quarterly_reports(
    store,
    student_id: str,
    iep_date: DateLike = None,
    annual_review_date: DateLike = None,
    now: Optional[datetime] = None,
) -> List[ProgressReport]:
    """
    Create quarterly reports for the school year containing the IEP date.

    Quarters that closed more than three months ago are skipped, and so are
    quarters that already have a report. Returns only the newly created reports.
    """
    now = now or utc_now()
    today = now.date()
    annual_review = parse_date(annual_review_date)
    scheduled: List[ProgressReport] = []

    for quarter in school_year_quarters(iep_date, reference_date=today):
        if quarter.end + QUARTER_GRACE_PERIOD < today:
            logger.debug(f"Skipping Q{quarter.quarter} ending {quarter.end} for student {student_id}: closed")
            continue

        due = quarterly_due_date(quarter.end, annual_review)
        report = _build_report(student_id, "quarterly", quarter.start, quarter.end, due, now)

        if not store.insert_if_absent(report):
            logger.debug(f"Q{quarter.quarter} report already exists for student {student_id}")
            continue

        logger.info(f"Scheduled Q{quarter.quarter} report for student {student_id} due {report.due_date} ({report.status})")
        scheduled.append(report)

    return scheduled


def schedule_annual_report(
    store,
    student_id: str,
    annual_review_date: DateLike = None,
    iep_date: DateLike = None,
    now: Optional[datetime] = None,
) -> Optional[ProgressReport]:
    """
    Create the annual report covering the year before the annual review.

    The review date falls back to one year after the IEP date. Returns None
    when neither date is known or when the report already exists.
    """
    annual_review = parse_date(annual_review_date)
    if annual_review is None:
        iep = parse_date(iep_date)
        if iep is None:
            return None
        annual_review = iep + relativedelta(years=1)

    now = now or utc_now()
    period_start = annual_review - relativedelta(years=1)
    due = annual_review - DUE_BEFORE_ANNUAL_REVIEW
    report = _build_report(student_id, "annual", period_start, annual_review, due, now)

    if not store.insert_if_absent(report):
        logger.debug(f"Annual report already exists for student {student_id} ending {report.period_end}")
        return None

    logger.info(f"Scheduled annual report for student {student_id} due {report.due_date} ({report.status})")
    return report


def schedule_reports_for_student(store, student: Dict[str, Any], now: Optional[datetime] = None) -> List[ProgressReport]:
    frequency = student.get("progress_report_frequency") or "annual"

    if frequency == "quarterly":
        return schedule_quarterly_reports(
            store,
            student["id"],
            student.get("iep_date"),
            student.get("annual_review_date"),
            now=now,
        )

    report = schedule_annual_report(
        store,
        student["id"],
        student.get("annual_review_date"),
        student.get("iep_date"),
        now=now,
    )
    return [report] if report else []


def refresh_overdue_statuses(store, now: Optional[datetime] = None) -> int:
    """Flip every scheduled report whose due date has passed to overdue."""
    changed = store.mark_overdue(to_iso_date(_today(now)))
    if changed:
        logger.info(f"Marked {changed} progress report(s) overdue")
    return changed
