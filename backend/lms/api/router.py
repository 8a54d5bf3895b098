from fastapi import APIRouter

from lms.api.endpoints import admin, auth, dean, student, teacher

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(admin.router, prefix="/admin")
api_router.include_router(dean.router, prefix="/dean")
api_router.include_router(teacher.router, prefix="/teacher")
api_router.include_router(student.router, prefix="/student")
