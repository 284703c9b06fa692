import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from institute.analytics.errors import InvalidExamConfiguration
from institute.attendance.attendance_router import router as attendance_router
from institute.batches.batch_router import router as batch_router
from institute.core import config
from institute.core.database import create_indexes, db_manager
from institute.courses.course_router import router as course_router
from institute.dashboard.dashboard_router import router as dashboard_router
from institute.enrollments.enrollment_router import router as enrollment_router
from institute.exams.exam_router import router as exam_router
from institute.exams.result_router import router as result_router
from institute.reports.report_router import router as report_router
from institute.users.auth_router import router as auth_router
from institute.users.teacher_router import router as teacher_router
from institute.users.user_router import router as user_router
from institute.users.verification_router import router as verification_router

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Institute Management API")


@app.on_event("startup")
async def startup_event():
    db_manager.connect()
    await create_indexes(db_manager.get_database())
    logger.info("Institute API started (version %s)", config.VERSION or "unknown")


@app.on_event("shutdown")
async def shutdown_event():
    db_manager.disconnect()


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidExamConfiguration)
async def invalid_exam_configuration_handler(request: Request, exc: InvalidExamConfiguration):
    # Stored exam data is broken; not something the client can fix
    logger.error("%s (%s %s)", exc, request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Invalid exam configuration"})


# ==================== ROUTER REGISTRATION ====================
for router in (
    auth_router,
    verification_router,
    user_router,
    teacher_router,
    course_router,
    batch_router,
    enrollment_router,
    attendance_router,
    exam_router,
    result_router,
    report_router,
    dashboard_router,
):
    app.include_router(router, prefix="/api")


@app.get("/version")
def version():
    return {"version": config.VERSION or "unknown", "status": "stable"}


@app.get("/health")
def health():
    return {"status": "ok"}
