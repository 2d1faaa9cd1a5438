from collections.abc import Iterable

from backend.schemas.dashboard import DashboardStats
from backend.schemas.student import Student


def format_rate(part: int, total: int) -> str:
    if total <= 0:
        return "0.0%"
    return f"{part / total * 100:.1f}%"


def compute_dashboard_stats(students: Iterable[Student]) -> DashboardStats:
    students = list(students)
    status_counts: dict[str, int] = {}
    courses: set[str] = set()

    for student in students:
        status_counts[student.status] = status_counts.get(student.status, 0) + 1
        courses.add(student.course)

    total = len(students)
    graduated = status_counts.get("graduated", 0)
    return DashboardStats(
        total_students=total,
        active_courses=len(courses),
        pending_applications=status_counts.get("pending", 0),
        graduation_rate=format_rate(graduated, total),
        active_students=status_counts.get("active", 0),
        graduated_students=graduated,
    )
