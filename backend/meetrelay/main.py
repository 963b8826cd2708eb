"""Main FastAPI application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from meetrelay.config import settings
from meetrelay.api import auth, calendar, recordings, sessions, signaling
from meetrelay.utils.exceptions import AppException, app_exception_handler

# Tables are created by meetrelay.create_tables (in production, use migrations)

app = FastAPI(
    title="MeetRelay API",
    description="Signaling relay and session coordination for remote support meetings",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppException, app_exception_handler)

# Include routers
app.include_router(sessions.router)
app.include_router(signaling.router)
app.include_router(calendar.router)
app.include_router(recordings.router)
app.include_router(auth.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "MeetRelay API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
