"""ASGI entry point. Run with `uvicorn academy_portal.main:app` or `python -m academy_portal.main`."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from academy_portal.api.v1.attendance.router import router as attendance_router
from academy_portal.api.v1.auth.router import router as auth_router
from academy_portal.api.v1.batches.router import router as batches_router
from academy_portal.api.v1.fees.router import router as fees_router
from academy_portal.api.v1.students.router import router as students_router
from academy_portal.api.v1.teachers.router import router as teachers_router
from academy_portal.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Academy Portal")

    # CORS_ORIGINS is a comma-separated list, or "*"
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(batches_router)
    app.include_router(students_router)
    app.include_router(teachers_router)
    app.include_router(fees_router)
    app.include_router(attendance_router)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("academy_portal.main:app", host="0.0.0.0", port=8000, reload=True)
