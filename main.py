"""
This is the support bot FastAPI service.

Two transports drive the same dialog router:
- POST /api/analyze   simple request/response endpoint for the web chat
- POST /api/messages  Bot Framework channel endpoint
"""
import asyncio
from datetime import datetime, timedelta
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from botbuilder.schema import Activity

from bot import SupportBot, create_adapter, prefer_inline_replies
from core.error_handling import handle_api_errors, validation_exception_handler
from core.settings import Settings
from flows import DialogRouter
from utils.logger import setup_logging, get_logger
from utils.session_store import SessionStore, run_periodic_sweep
from utils.text_analysis import AzureTextAnalysisGateway, TextAnalysisGateway
from utils.ticket import summarize

from models import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    SessionCleanupResponse,
    SessionClearResponse,
    SessionStateResponse,
)

load_dotenv()

setup_logging()
logger = get_logger(__name__)

SERVICE_NAME = "it-support-dialog-bot"
VERSION = "1.0.0"


# ============================================================================
# Application Factory
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[TextAnalysisGateway] = None,
    store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration (read from the environment when None)
        gateway: Text analysis gateway (Azure AI Language when None)
        store: Session store (a fresh one when None)

    Returns:
        FastAPI app; the router, store and sweep task are set up in its lifespan
    """
    app_settings = settings if settings is not None else Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        analysis_gateway = gateway
        if analysis_gateway is None:
            # Missing LANGUAGE_ENDPOINT / LANGUAGE_KEY aborts startup here
            app_settings.validate()
            analysis_gateway = AzureTextAnalysisGateway(
                endpoint=app_settings.language_endpoint,
                key=app_settings.language_key,
            )

        session_store = store if store is not None else SessionStore(
            ttl=app_settings.session_ttl,
            max_sessions=app_settings.session_max_count,
        )

        app.state.settings = app_settings
        app.state.store = session_store
        app.state.router = DialogRouter(session_store, analysis_gateway, app_settings)
        app.state.bot = SupportBot(app.state.router)
        app.state.adapter = create_adapter(app_settings)

        sweep_task = asyncio.create_task(
            run_periodic_sweep(session_store, app_settings.session_sweep_interval_seconds)
        )

        logger.info("=" * 80)
        logger.info("IT Support Dialog Bot Starting")
        logger.info("=" * 80)
        logger.info(f"Analysis gateway: {analysis_gateway.__class__.__name__}")
        logger.info(f"Session TTL: {app_settings.session_ttl_minutes} min, "
                    f"sweep every {app_settings.session_sweep_interval_seconds}s")
        logger.info(f"Analysis timeout: {app_settings.analysis_timeout_seconds}s")
        logger.info("=" * 80)

        yield  # Application runs here

        # Shutdown
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
        await analysis_gateway.close()
        logger.info("IT Support Dialog Bot Shutting Down")

    app = FastAPI(
        title="IT Support Dialog Bot API",
        description="Scripted tech support dialog with text analytics",
        version=VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    _register_routes(app)
    return app


# ============================================================================
# API Endpoints
# ============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            Health status
        """
        store: SessionStore = request.app.state.store
        return {
            "ok": True,
            "status": "healthy",
            "name": SERVICE_NAME,
            "timestamp": datetime.now().isoformat(),
            "version": VERSION,
            "active_sessions": len(store),
        }

    @app.post("/api/analyze", response_model=AnalyzeResponse)
    @handle_api_errors("analyze")
    async def analyze(body: AnalyzeRequest, request: Request):
        """
        Web chat endpoint: one message in, one reply out.

        The returned sessionId must be sent back with the next message to keep
        the conversation going.
        """
        router: DialogRouter = request.app.state.router
        session, reply = await router.handle_message(body.session_id, body.text)

        return AnalyzeResponse(ok=True, sessionId=session.session_id, reply=reply.text)

    @app.post("/api/messages")
    @handle_api_errors("messages")
    async def messages(request: Request):
        """
        Bot Framework channel endpoint.

        The activity is authenticated by the adapter; only message activities
        are answered and the conversation id keys the dialog session. Replies
        go back through the channel connector, or inline when the channel is
        a localhost emulator.
        """
        activity = Activity().deserialize(await request.json())
        auth_header = request.headers.get("Authorization", "")
        prefer_inline_replies(activity)

        try:
            response = await request.app.state.adapter.process_activity(
                activity, auth_header, request.app.state.bot.on_turn
            )
        except PermissionError as e:
            logger.warning(f"Rejected unauthenticated activity: {e}")
            raise HTTPException(status_code=401, detail="Unauthorized")

        if response:
            return JSONResponse(content=response.body, status_code=response.status)
        return Response(status_code=201)

    @app.get("/session/{session_id}", response_model=SessionStateResponse)
    async def get_session_state(session_id: str, request: Request):
        """
        Inspect a session without touching it.

        Raises:
            HTTPException: 404 if the session does not exist
        """
        store: SessionStore = request.app.state.store
        session = store.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

        return {
            "session_id": session.session_id,
            "mode": session.mode,
            "step": session.step,
            "ticket": session.ticket.to_dict(),
            "summary": summarize(session.ticket),
            "created_at": session.created_at.isoformat(),
            "last_seen_at": session.last_seen_at.isoformat(),
        }

    @app.delete("/session/{session_id}", response_model=SessionClearResponse)
    async def clear_session(session_id: str, request: Request):
        """
        Clear a conversation session.

        Returns:
            Success message
        """
        store: SessionStore = request.app.state.store
        if not store.clear(session_id):
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

        logger.info(f"Session {session_id} cleared")
        return {"status": "success", "message": f"Session {session_id} cleared"}

    @app.post("/maintenance/cleanup-sessions", response_model=SessionCleanupResponse)
    @handle_api_errors("cleanup-sessions")
    async def cleanup_old_sessions(request: Request, ttl_minutes: Optional[int] = None):
        """
        Run the session expiry sweep now.

        Args:
            ttl_minutes: Idle threshold (defaults to the configured TTL)

        Returns:
            Cleanup results
        """
        store: SessionStore = request.app.state.store
        settings: Settings = request.app.state.settings
        if ttl_minutes is not None and ttl_minutes < 0:
            raise ValueError("ttl_minutes must not be negative")

        ttl = ttl_minutes if ttl_minutes is not None else settings.session_ttl_minutes
        removed_count = store.sweep_expired(ttl=timedelta(minutes=ttl))
        logger.info(f"Cleaned up {removed_count} idle sessions")

        return {
            "status": "success",
            "sessions_removed": removed_count,
            "ttl_minutes": ttl,
        }


app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    run_settings = Settings.from_env()
    logger.info(f"Starting server on {run_settings.api_host}:{run_settings.api_port}")

    uvicorn.run(
        "main:app",
        host=run_settings.api_host,
        port=run_settings.api_port,
        log_level="info",
    )
