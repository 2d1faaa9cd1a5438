from backend.schemas.base import CamelModel


class DashboardStats(CamelModel):
    total_students: int
    active_courses: int
    pending_applications: int
    graduation_rate: str
    active_students: int
    graduated_students: int
