from fastapi import APIRouter

from app.api import auth, classrooms, schools, students, system, users

api_router = APIRouter()
api_router.include_router(system.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(schools.router)
api_router.include_router(classrooms.router)
api_router.include_router(students.router)
