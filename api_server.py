"""FastAPI REST API server for Voice Reminder Service.

This module provides the reminder store endpoints used by the dashboard,
the reminders page and the notification worker.

JSON uses camelCase names; errors are returned as {"message": "..."}.
"""

from fastapi import FastAPI, Depends, Header, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import crud
import schemas
import database
from config import settings
from extractor import extract
from logger_config import setup_logger

logger = setup_logger(__name__, 'api.log')

# Create FastAPI application
app = FastAPI(
    title="Voice Reminder Service API",
    description="Payment reminders created by typing or dictation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

origins = [
    "http://localhost:3000",      # React dev server
    "http://localhost:5173",      # Vite dev server
]

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render errors as {"message": ...}, which clients show verbatim."""
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"Invalid {field}: {first.get('msg', 'invalid value')}" if field else "Invalid request."
    return JSONResponse(status_code=422, content={"message": message})


def current_user(x_user_id: str = Header("local")) -> str:
    """Owner scope from the X-User-Id header (not authentication)."""
    return x_user_id


@app.get("/")
def root():
    """Root endpoint - service information"""
    return {
        "service": "Voice Reminder Service API",
        "version": "1.0.0",
        "status": "healthy",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "reminders": "/user/reminders"
        }
    }


@app.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "voice_reminder_service",
        "database": settings.DATABASE_URL.split("://")[0]
    }


@app.get("/user/reminders", response_model=schemas.ReminderList)
def list_reminders(
    user_id: str = Depends(current_user),
    db: Session = Depends(database.get_db)
):
    """List the user's reminders, newest first."""
    return {"reminders": crud.list_reminders(db, user_id)}


@app.post("/user/reminders", response_model=schemas.ReminderEnvelope, status_code=201)
def create_reminder(
    reminder: schemas.ReminderCreate,
    user_id: str = Depends(current_user),
    db: Session = Depends(database.get_db)
):
    """Create a reminder.

    Request body example:
    ```json
    {
        "note": "Remind me to pay Rahul ₹2500 on Friday at 6 PM",
        "payee": "Rahul",
        "amount": 2500,
        "dueDate": "2025-10-31T12:30:00Z",
        "rawTranscript": "Remind me to pay Rahul ₹2500 on Friday at 6 PM",
        "source": "voice"
    }
    ```

    Returns the stored reminder with its canonical id and createdAt.
    """
    try:
        created = crud.create_reminder(db, reminder.model_dump(), user_id)
    except Exception as e:
        logger.error(f"Error creating reminder: {str(e)}", exc_info=True)
        raise HTTPException(status_code=400, detail="Unable to save reminder.")
    return {"reminder": created}


@app.post("/user/reminders/extract", response_model=schemas.ExtractedFields, response_model_exclude_none=True)
def extract_fields(request: schemas.ExtractRequest):
    """Suggest form fields for a dictated reminder.

    Nothing is stored. Fields that could not be recognized are omitted;
    ``note`` is always the transcript.
    """
    return extract(request.transcript)


@app.delete("/user/reminders/{reminder_id}", status_code=204)
def delete_reminder(
    reminder_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(database.get_db)
):
    """Delete a reminder. Responds 204 with an empty body."""
    if not crud.delete_reminder(db, reminder_id, user_id):
        raise HTTPException(status_code=404, detail="Reminder not found")
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info"
    )
