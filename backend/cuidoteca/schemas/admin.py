from pydantic import BaseModel


class AdminStatsResponse(BaseModel):
    total_parents: int
    total_cuidadores: int
    total_institutions: int
    total_children: int
    confirmed_enrollments: int
    pending_enrollments: int
