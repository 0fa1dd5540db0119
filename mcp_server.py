"""MCP Server for Voice Reminder Service.

This module provides MCP tools for AI agents to turn transcripts into
reminders and manage them. Uses the same database as the REST API.

Transport Support:
- stdio: Standard input/output (local process communication)
- sse: Server-Sent Events over HTTP (network access)
"""

from mcp.server.fastmcp import FastMCP
from datetime import datetime
import os

import crud
import database
from config import settings
from extractor import extract
from logger_config import setup_logger

logger = setup_logger(__name__, 'mcp.log')
logger.info("MCP Server initialized")

# Create FastMCP server with host and port from settings
mcp = FastMCP(
    "VoiceReminderService",
    host=settings.MCP_HOST,
    port=settings.MCP_PORT
)


def parse_iso(value: str) -> datetime:
    """Parse an ISO datetime string ('Z' accepted as UTC)."""
    return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))


def format_reminder(reminder) -> str:
    due = reminder.due_date or reminder.remind_at
    lines = [f"• {reminder.note}", f"  ID: {reminder.id}"]
    if reminder.payee:
        lines.append(f"  Payee: {reminder.payee}")
    if reminder.amount is not None:
        lines.append(f"  Amount: ₹{reminder.amount:g}")
    lines.append(f"  Due: {due.isoformat() if due else 'not scheduled'}")
    if reminder.source:
        lines.append(f"  Source: {reminder.source}")
    return "\n".join(lines)


@mcp.tool()
def extract_reminder_fields(transcript: str) -> dict:
    """Suggest reminder fields for a spoken sentence without saving anything.

    Args:
        transcript: e.g. "Remind me to pay Rahul ₹2500 on Friday at 6 PM"

    Returns:
        Dict with note and any of amount, payee, dueDate that were recognized
    """
    return extract(transcript).present()


@mcp.tool()
def create_reminder_from_transcript(transcript: str, user_id: str = "local") -> str:
    """Extract fields from a transcript and save the reminder.

    Args:
        transcript: Spoken sentence
        user_id: Owner scope (default: "local")

    Returns:
        Success message with the stored fields, or error message
    """
    fields = extract(transcript)
    if not fields.note.strip():
        return "✗ Error creating reminder: transcript is empty"

    db = database.SessionLocal()
    try:
        logger.info(f"📝 Creating reminder from transcript: {transcript!r}")
        reminder_data = {
            'note': fields.note.strip(),
            'payee': fields.payee,
            'amount': float(fields.amount) if fields.amount else None,
            'due_date': datetime.fromisoformat(fields.due_date) if fields.due_date else None,
            'raw_transcript': transcript,
            'source': 'voice',
        }
        reminder = crud.create_reminder(db, reminder_data, user_id)
        return "✓ Reminder created successfully!\n" + format_reminder(reminder)
    except Exception as e:
        return f"✗ Error creating reminder: {str(e)}"
    finally:
        db.close()


@mcp.tool()
def create_reminder(
    note: str,
    remind_at: str = None,
    due_date: str = None,
    payee: str = None,
    amount: float = None,
    user_id: str = "local"
) -> str:
    """Create a reminder from explicit fields.

    Args:
        note: Reminder text
        remind_at: Optional notification time - ISO format (e.g., "2025-10-26T15:00:00+05:30")
        due_date: Optional payment due date - ISO format
        payee: Optional payee name
        amount: Optional amount in rupees
        user_id: Owner scope (default: "local")

    Returns:
        Success message with reminder details, or error message
    """
    db = database.SessionLocal()
    try:
        reminder_data = {
            'note': note.strip(),
            'remind_at': parse_iso(remind_at) if remind_at else None,
            'due_date': parse_iso(due_date) if due_date else None,
            'payee': payee,
            'amount': amount,
            'source': 'mcp',
        }
        if not reminder_data['note']:
            return "✗ Error creating reminder: note is empty"
        reminder = crud.create_reminder(db, reminder_data, user_id)
        return "✓ Reminder created successfully!\n" + format_reminder(reminder)
    except Exception as e:
        return f"✗ Error creating reminder: {str(e)}"
    finally:
        db.close()


@mcp.tool()
def list_reminders(user_id: str = "local", limit: int = 50) -> str:
    """List reminders for a user, newest first.

    Args:
        user_id: Owner scope (default: "local")
        limit: Maximum number of results (default: 50, max: 500)

    Returns:
        Formatted list of reminders or message if none found
    """
    db = database.SessionLocal()
    try:
        reminders = crud.list_reminders(db, user_id, min(limit, 500))
        if not reminders:
            return "No reminders found."

        result = [f"Found {len(reminders)} reminder(s):"]
        result.extend(format_reminder(r) for r in reminders)
        return "\n".join(result)
    finally:
        db.close()


@mcp.tool()
def delete_reminder(reminder_id: str, user_id: str = "local") -> str:
    """Delete a reminder.

    Args:
        reminder_id: Reminder UUID
        user_id: Owner scope (default: "local")

    Returns:
        Success or error message
    """
    db = database.SessionLocal()
    try:
        if crud.delete_reminder(db, reminder_id, user_id):
            return f"✓ Reminder {reminder_id} deleted successfully."
        return "✗ Reminder not found."
    finally:
        db.close()


if __name__ == "__main__":
    transport = os.getenv("MCP_TRANSPORT", settings.MCP_TRANSPORT).lower()

    if transport == "sse":
        print(f"Starting MCP server with SSE transport on {settings.MCP_HOST}:{settings.MCP_PORT}")
        print(f"SSE endpoint: http://{settings.MCP_HOST}:{settings.MCP_PORT}/sse")
        mcp.run(transport="sse")
    else:
        print("Starting MCP server with stdio transport")
        mcp.run(transport="stdio")
