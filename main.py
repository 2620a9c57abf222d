# main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from complaintdesk.core.config import CORS_ORIGINS, LOG_LEVEL
from complaintdesk.core.db import init_models
from complaintdesk.middleware.request_logger import RequestLoggerMiddleware
from complaintdesk.routers import admin, complaints, inventory

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="Complaint Desk API",
    description="FastAPI backend for appliance service complaints, repairs and spare parts",
    version="0.1.0"
)
# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)

# Health check endpoint
@app.get("/", tags=["Health"])
async def health_check():
    return {"status": "ok", "message": "Backend is running"}

# Register routers
app.include_router(complaints.router)
app.include_router(inventory.router)
app.include_router(admin.router)


@app.on_event("startup")
async def on_startup():
    await init_models()
