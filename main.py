#!/usr/bin/env python3
"""
Main FastAPI application with modular router structure
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from church_reports.core.config import settings
from church_reports.api import auth, reports, schedules, root
from church_reports.utils.events import startup_handler, shutdown_handler

app = FastAPI(title=settings.APP_TITLE, version=settings.APP_VERSION)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Startup Event
@app.on_event("startup")
async def startup_event():
    await startup_handler()

# Shutdown Event
@app.on_event("shutdown")
async def shutdown_event():
    await shutdown_handler()

# Register Routers
app.include_router(auth.router)
app.include_router(reports.router)
app.include_router(schedules.router)
app.include_router(root.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
