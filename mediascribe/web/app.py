"""aiohttp request layer exposing the transcription pipeline over HTTP."""

import json
import logging
from typing import Any, Dict, Optional

from aiohttp import web

from ..config import MediaScribeConfig
from ..exceptions import MediaScribeError, UnsupportedSourceError
from ..services.session_manager import SessionManager

logger = logging.getLogger(__name__)

SESSION_MANAGER_KEY = web.AppKey("session_manager", SessionManager)


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _read_json(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def process_url(request: web.Request) -> web.Response:
    """POST /api/url/process {"url": ...}"""
    url = (await _read_json(request)).get("url")
    if not url:
        return _error(400, "No URL provided")

    manager = request.app[SESSION_MANAGER_KEY]
    try:
        result = await manager.process_url(url)
    except UnsupportedSourceError as e:
        return _error(400, str(e))
    except MediaScribeError as e:
        logger.error(f"Error processing URL: {e}")
        return _error(500, str(e))
    except Exception as e:
        logger.exception(f"Unexpected error processing URL: {e}")
        return _error(500, f"Failed to process URL: {e}")
    return web.json_response(result)


async def transcribe(request: web.Request) -> web.Response:
    """POST /api/transcribe {"filePath": ...}"""
    file_path = (await _read_json(request)).get("filePath")
    if not file_path:
        return _error(400, "No file selected")

    manager = request.app[SESSION_MANAGER_KEY]
    try:
        result = await manager.transcribe(file_path)
    except FileNotFoundError as e:
        return _error(404, str(e))
    except ValueError as e:
        # Bad resource path or missing API key
        logger.error(f"Transcription rejected: {e}")
        return _error(400, str(e))
    except MediaScribeError as e:
        logger.error(f"Transcription error: {e}")
        return _error(500, str(e))
    except Exception as e:
        logger.exception(f"Unexpected transcription error: {e}")
        return _error(500, f"Transcription failed: {e}")
    return web.json_response(result.to_response())


async def cleanup_session(request: web.Request) -> web.Response:
    """DELETE /api/sessions/{session_id}"""
    manager = request.app[SESSION_MANAGER_KEY]
    try:
        failures = await manager.cleanup_session(request.match_info["session_id"])
    except ValueError as e:
        return _error(400, str(e))
    return web.json_response({
        "success": not failures,
        "failures": [{"path": str(f.path), "error": f.error} for f in failures],
    })


async def serve_resource(request: web.Request) -> web.StreamResponse:
    """GET /temp_resources/{session_id}/{filename}"""
    manager = request.app[SESSION_MANAGER_KEY]
    try:
        session_path = manager.file_manager.get_session_path(request.match_info["session_id"])
    except ValueError:
        raise web.HTTPNotFound(text="File not found")

    filename = request.match_info["filename"]
    file_path = session_path / filename
    if filename != file_path.name or not file_path.is_file():
        logger.info(f"File not found: {file_path}")
        raise web.HTTPNotFound(text="File not found")
    return web.FileResponse(file_path)


async def _close_manager(app: web.Application) -> None:
    await app[SESSION_MANAGER_KEY].close()


def create_app(config: MediaScribeConfig, manager: Optional[SessionManager] = None) -> web.Application:
    """Build the aiohttp application.

    Args:
        config: Application configuration
        manager: Preconfigured session manager (tests inject one)
    """
    app = web.Application()
    app[SESSION_MANAGER_KEY] = manager or SessionManager(config)
    app.router.add_get("/health", health)
    app.router.add_post("/api/url/process", process_url)
    app.router.add_post("/api/transcribe", transcribe)
    app.router.add_delete("/api/sessions/{session_id}", cleanup_session)
    app.router.add_get("/temp_resources/{session_id}/{filename}", serve_resource)
    app.on_cleanup.append(_close_manager)
    return app


def run_server(config: MediaScribeConfig) -> None:
    """Run the HTTP server until interrupted."""
    host = config.get('server.host', '0.0.0.0')
    port = config.get('server.port', 3000)
    logger.info(f"Server running at http://{host}:{port}")
    web.run_app(create_app(config), host=host, port=port, print=None)
