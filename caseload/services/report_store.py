from typing import Any, Dict, List, Optional
import logging

from caseload.schemas.progress_report import ProgressReport, ReportType
from caseload.utils.dates import utc_now

logger = logging.getLogger(__name__)

REPORTS_TABLE = "progress_reports"
# Must match the unique index on progress_reports
REPORT_PERIOD_KEY = "student_id,period_start,period_end,report_type"


class SupabaseReportStore:
    """Persistence for progress reports on top of a Supabase client."""

    def __init__(self, supabase):
        self.supabase = supabase

    # report_exists and save_report are the plain lookup / insert pair; the
    # scheduler goes through insert_if_absent, which combines them atomically
    def report_exists(self, student_id: str, period_start: str, period_end: str, report_type: ReportType) -> bool:
        res = self.supabase \
            .table(REPORTS_TABLE) \
            .select("id") \
            .eq("student_id", student_id) \
            .eq("period_start", period_start) \
            .eq("period_end", period_end) \
            .eq("report_type", report_type) \
            .limit(1) \
            .execute()
        return bool(res.data)

    def insert_if_absent(self, report: ProgressReport) -> bool:
        """
        Insert `report` unless one already exists for its period.

        Runs as a single upsert that ignores conflicts on the period key,
        so two schedulers racing on the same student cannot both insert.
        Returns True when a row was written.
        """
        res = self.supabase \
            .table(REPORTS_TABLE) \
            .upsert(report.model_dump(), on_conflict=REPORT_PERIOD_KEY, ignore_duplicates=True) \
            .execute()
        return bool(res.data)

    def save_report(self, report: ProgressReport) -> None:
        self.supabase.table(REPORTS_TABLE).insert(report.model_dump()).execute()

    def mark_overdue(self, today: str) -> int:
        res = self.supabase \
            .table(REPORTS_TABLE) \
            .update({"status": "overdue", "date_updated": utc_now().isoformat()}) \
            .eq("status", "scheduled") \
            .lt("due_date", today) \
            .execute()
        return len(res.data or [])

    def mark_completed(self, report_id: str) -> Optional[Dict[str, Any]]:
        now = utc_now().isoformat()
        res = self.supabase \
            .table(REPORTS_TABLE) \
            .update({"status": "completed", "completed_date": now, "date_updated": now}) \
            .eq("id", report_id) \
            .execute()
        return res.data[0] if res.data else None

    def get_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        res = self.supabase.table(REPORTS_TABLE).select("*").eq("id", report_id).execute()
        return res.data[0] if res.data else None

    def list_reports(
        self,
        student_ids: Optional[List[str]] = None,
        status: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        exclude_completed: bool = False,
    ) -> List[Dict[str, Any]]:
        query = self.supabase.table(REPORTS_TABLE).select("*")
        if student_ids is not None:
            query = query.in_("student_id", student_ids)
        if status:
            query = query.eq("status", status)
        if exclude_completed:
            query = query.neq("status", "completed")
        if start_date:
            query = query.gte("due_date", start_date)
        if end_date:
            query = query.lte("due_date", end_date)
        return query.order("due_date").execute().data or []

    def delete_report(self, report_id: str) -> bool:
        res = self.supabase.table(REPORTS_TABLE).delete().eq("id", report_id).execute()
        return bool(res.data)
