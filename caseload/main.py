from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from caseload.routes import students, goals, sessions, progress_reports
from dotenv import load_dotenv
import logging
import os

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

app = FastAPI(
    redirect_slashes=False,
    title="Caseload API",
    description="API for speech-language pathology caseload management",
    version="1.0.0",
    openapi_tags=[
        {
            "name": "Progress Reports",
            "description": "Quarterly and annual progress report scheduling",
        },
    ],
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "http://localhost:5173")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(students.router, prefix="/students")
app.include_router(goals.router, prefix="/goals")
app.include_router(sessions.router, prefix="/sessions")
app.include_router(progress_reports.router, prefix="/progress-reports", tags=["Progress Reports"])

@app.get("/health")
def health():
    return {"status": "ok"}
