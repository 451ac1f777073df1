import logging

from fastapi import FastAPI

from payroll_automation.api.invoices import router as invoices_router
from payroll_automation.api.process import invoices_router as process_invoices_router
from payroll_automation.api.process import timesheets_router as process_timesheets_router
from payroll_automation.api.work_records import router as work_records_router
from payroll_automation.core.config import settings
from payroll_automation.core.db import MongoStore
from payroll_automation.core.notifications import Notifier

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Payroll Automation Service",
    version="0.1.0",
    description="Timesheet -> Invoice -> Payroll automation (REST + MongoDB)",
)

app.include_router(process_invoices_router)
app.include_router(process_timesheets_router)
app.include_router(work_records_router)
app.include_router(invoices_router)


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": "payroll-automation-service",
    }


@app.get("/")
async def root():
    return {
        "message": "Payroll Automation Service is running",
        "docs": "/docs",
    }


@app.on_event("startup")
async def on_startup() -> None:
    logger.info("Connecting to MongoDB database %s", settings.MONGODB_DB_NAME)
    store = MongoStore.connect(settings)
    # unique 인덱스 생성 (멱등성 보장)
    await store.init()

    app.state.store = store
    app.state.settings = settings
    app.state.notifier = Notifier.from_settings(settings)
    if app.state.notifier is None:
        logger.info("NOTIFICATION_SERVICE_BASE_URL not set, notifications disabled")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    store = getattr(app.state, "store", None)
    if store:
        logger.info("Closing MongoDB connection")
        store.close()
