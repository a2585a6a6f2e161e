from fastapi import FastAPI, Request
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import Base, engine
from datetime import datetime
import os
import logging
from fastapi.openapi.utils import get_openapi

import models  # noqa: F401  registers every table on Base.metadata
import auth
import routers.app_config as app_config
import routers.banks as banks
import routers.borrowed_money as borrowed_money
import routers.capital as capital
import routers.companies as companies
import routers.customers as customers
import routers.dashboard as dashboard
import routers.drivers as drivers
import routers.expenses as expenses
import routers.notifications as notifications
import routers.payments as payments
import routers.reports as reports
import routers.transactions as transactions
import routers.vehicles as vehicles
from utils.errors import LedgerError


LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE,
    filemode='a'
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "INTERNAL_ERROR"})


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Trade Ledger API",
        version="1.0.0",
        description="API for the driver trading back-office ledger",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(auth.router)
app.include_router(transactions.router)
app.include_router(drivers.router)
app.include_router(customers.router)
app.include_router(companies.router)
app.include_router(banks.router)
app.include_router(vehicles.router)
app.include_router(capital.router)
app.include_router(borrowed_money.router)
app.include_router(notifications.router)
app.include_router(payments.router)
app.include_router(expenses.router)
app.include_router(dashboard.router)
app.include_router(reports.router)
app.include_router(app_config.router)


@app.on_event("startup")
def start_scheduler():
    if os.getenv("ENABLE_SCHEDULER", "false").lower() in ("1", "true", "yes"):
        from scheduler import scheduler
        scheduler.start()
        logger.info("End-of-day scheduler started")


@app.on_event("shutdown")
def stop_scheduler():
    from scheduler import scheduler
    if scheduler.running:
        scheduler.shutdown(wait=False)


@app.get("/")
async def test_route():
    return {"message": "Welcome to the Trade Ledger API!"}
