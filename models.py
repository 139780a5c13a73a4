"""
Pydantic models for request/response validation.

This module contains all the data models used by the FastAPI endpoints.
"""
from typing import Dict, Optional
from pydantic import BaseModel, Field


# ============================================================================
# Web Chat Models
# ============================================================================

class AnalyzeRequest(BaseModel):
    """Request model for the web chat endpoint."""
    text: str = Field(..., description="User message", min_length=1, max_length=10000)
    session_id: Optional[str] = Field(
        None, alias="sessionId", description="Session ID returned by a previous call", max_length=100
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "text": "my wifi keeps dropping",
                    "sessionId": "3f2b9c0e6d4a4f1e9b7c2a1d5e8f0a6b"
                }
            ]
        }
    }


class AnalyzeResponse(BaseModel):
    """Response model for the web chat endpoint."""
    ok: bool = Field(True, description="Whether the message was processed")
    session_id: str = Field(..., alias="sessionId", description="Session ID to send with the next message")
    reply: str = Field(..., description="Bot reply")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "ok": True,
                    "sessionId": "3f2b9c0e6d4a4f1e9b7c2a1d5e8f0a6b",
                    "reply": "Alright, let's troubleshoot this step-by-step. ✅ (lang: en, sentiment: neutral)\n"
                             "Network mode: first, are you on Wi-Fi or Ethernet?"
                }
            ]
        }
    }


# ============================================================================
# Session Models
# ============================================================================

class SessionStateResponse(BaseModel):
    """Response model for session inspection."""
    session_id: str = Field(..., description="Session identifier")
    mode: str = Field(..., description="Active mode")
    step: int = Field(..., description="Step within the active mode")
    ticket: Dict = Field(..., description="Ticket fields collected so far")
    summary: str = Field(..., description="Formatted ticket summary")
    created_at: str = Field(..., description="Session creation time")
    last_seen_at: str = Field(..., description="Time of the last message")


class SessionClearResponse(BaseModel):
    """Response model for session clearing."""
    status: str = Field(..., description="Operation status")
    message: str = Field(..., description="Confirmation message")


class SessionCleanupResponse(BaseModel):
    """Response model for session cleanup operation."""
    status: str = Field(..., description="Operation status")
    sessions_removed: int = Field(..., description="Number of sessions removed")
    ttl_minutes: int = Field(..., description="Idle threshold used for cleanup")


# ============================================================================
# Health Check Model
# ============================================================================

class HealthResponse(BaseModel):
    """Response model for health check."""
    ok: bool = Field(True, description="Whether the service is up")
    status: str = Field(..., description="Service health status")
    name: str = Field(..., description="Service name")
    timestamp: str = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    active_sessions: int = Field(..., description="Number of sessions in memory")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "ok": True,
                    "status": "healthy",
                    "name": "it-support-dialog-bot",
                    "timestamp": "2025-10-07T12:00:00",
                    "version": "1.0.0",
                    "active_sessions": 3
                }
            ]
        }
    }
