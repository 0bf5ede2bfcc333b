from typing import Optional, Sequence
import logging

from caseload.schemas.session import PerformanceEntry, PerformancePoint, RecentPerformance, Session

logger = logging.getLogger(__name__)

RECENT_SESSION_LIMIT = 3


def entry_accuracy(entry: Optional[PerformanceEntry]) -> Optional[float]:
    """
    Accuracy for one performance entry, as a percentage.

    An explicit accuracy wins; otherwise trial counts are converted with
    correct / (correct + incorrect) * 100. Returns None when neither is usable.
    """
    if entry is None:
        return None
    if entry.accuracy is not None:
        return float(entry.accuracy)
    correct = entry.correct_trials or 0
    incorrect = entry.incorrect_trials or 0
    if correct + incorrect > 0:
        return correct * 100 / (correct + incorrect)
    return None


def recent_performance(
    goal_id: str,
    sessions: Sequence[Session],
    student_id: Optional[str] = None,
    limit: int = RECENT_SESSION_LIMIT,
) -> RecentPerformance:
    goal_sessions = [
        s for s in sessions
        if goal_id in s.goals_targeted and (student_id is None or s.student_id == student_id)
    ]
    goal_sessions.sort(key=lambda s: s.date, reverse=True)

    # The window is the last `limit` sessions; ones without usable data are dropped after
    points = []
    for session in goal_sessions[:limit]:
        entry = next((p for p in session.performance_data if p.goal_id == goal_id), None)
        accuracy = entry_accuracy(entry)
        if accuracy is None:
            continue
        points.append(PerformancePoint(
            date=session.date,
            accuracy=accuracy,
            correct_trials=entry.correct_trials,
            incorrect_trials=entry.incorrect_trials,
        ))

    # None (no data) is distinct from an average of 0
    average = sum(p.accuracy for p in points) / len(points) if points else None

    return RecentPerformance(recent_sessions=points, average=average)
