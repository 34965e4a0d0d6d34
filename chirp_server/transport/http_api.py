"""
HTTP API for Chirp Server

Module: transport.http_api
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Token lifecycle endpoints
  - POST /api/refresh, POST /api/revoke
  - Login returns an access + refresh token pair
[2026-10-05 v0.1.0] Initial implementation
  - Posts and users endpoints over aiohttp
  - /app static files with a hit counter, /admin/metrics

ARCHITECTURE:
A thin aiohttp layer over the synchronous core:
  - Handlers decode JSON, call DocumentStore / SessionManager in the default
    executor (one worker thread per request), encode JSON
  - AppState holds all mutable server state (hit counter included) and is
    owned by the web.Application for its whole lifetime
  - error_middleware maps core exceptions to status codes

ENDPOINTS:
  GET  /api/healthz          readiness
  GET  /api/reset            reset the hit counter
  POST /api/login            {email, password[, expires_in_seconds]}
  POST /api/refresh          Authorization: Bearer <refresh token>
  POST /api/revoke           Authorization: Bearer <refresh token>
  POST /api/chirps           {body}
  GET  /api/chirps           all posts, ascending id
  GET  /api/chirps/{id}      one post
  POST /api/users            {email, password}
  PUT  /api/users            Authorization: Bearer <access token>
  GET  /admin/metrics        hit counter page
  GET  /app/...              static files

SECURITY NOTES:
- Error bodies never echo tokens or secrets
- CORS is fully open (Access-Control-Allow-Origin: *)
"""

import asyncio
import functools
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from aiohttp import web

from ..core.config import ServerConfig
from ..core.constants import BANNED_WORDS, CENSORED_WORD, MAX_POST_LENGTH
from ..persistence.document_store import (
    DocumentStore,
    DocumentStoreError,
    DuplicateEmailError,
    InvalidCredentialError,
    NotFoundError,
)
from ..persistence.json_store import JSONStoreError
from ..security.authentication.jwt_handler import JWTError, JWTHandler
from ..security.authentication.password_hasher import (
    PasswordHasher,
    PasswordHashError,
    SecretTooLongError,
)
from ..security.authentication.session_manager import SessionManager


METRICS_TEMPLATE = """<html>

<body>
    <h1>Welcome, Chirpy Admin</h1>
    <p>Chirpy has been visited {hits} times!</p>
</body>

</html>
"""


@dataclass
class AppState:
    """Mutable server state, scoped to one web.Application"""
    config: ServerConfig
    store: DocumentStore
    sessions: SessionManager
    file_server_hits: int = 0


STATE_KEY = web.AppKey("state", AppState)
logger = logging.getLogger("transport.http_api")


class BadRequestError(Exception):
    """Request body failed validation"""
    pass


def clean_body(body: str) -> str:
    """Replace banned words (case-insensitive, whole words) with ****"""
    words = body.split(" ")
    return " ".join(
        CENSORED_WORD if word.lower() in BANNED_WORDS else word
        for word in words
    )


def json_error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _read_json(request: web.Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadRequestError(f"Invalid JSON body: {e}")
    if not isinstance(payload, dict):
        raise BadRequestError("JSON body must be an object")
    return payload


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise BadRequestError(f"'{key}' must be a non-empty string")
    return value


async def _run_blocking(func: Callable, *args, **kwargs):
    """Run a blocking core call on the default executor"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


# ============================================================================
# Middlewares
# ============================================================================

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS, PUT, DELETE",
    "Access-Control-Allow-Headers": "*",
}


@web.middleware
async def cors_middleware(request: web.Request, handler):
    if request.method == "OPTIONS":
        return web.Response(status=200, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def metrics_middleware(request: web.Request, handler):
    """Count hits on the static file server"""
    if request.path == "/app" or request.path.startswith("/app/"):
        request.app[STATE_KEY].file_server_hits += 1
        response = await handler(request)
        response.headers["Cache-Control"] = "no-cache"
        return response
    return await handler(request)


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map core exceptions to HTTP responses"""
    try:
        return await handler(request)
    except BadRequestError as e:
        return json_error(400, str(e))
    except SecretTooLongError as e:
        return json_error(400, str(e))
    except JWTError as e:
        logger.warning(f"Unauthorized {request.method} {request.path}: {e}")
        return json_error(401, str(e))
    except DuplicateEmailError as e:
        return json_error(409, str(e))
    except NotFoundError as e:
        return json_error(404, str(e))
    except InvalidCredentialError as e:
        return json_error(401, str(e))
    except DocumentStoreError as e:
        return json_error(400, str(e))
    except (JSONStoreError, PasswordHashError) as e:
        logger.error(f"Internal error on {request.method} {request.path}: {e}")
        return json_error(500, "Internal server error")


# ============================================================================
# Handlers
# ============================================================================

async def readiness_handler(request: web.Request) -> web.Response:
    return web.Response(text="OK", content_type="text/plain", charset="utf-8")


async def reset_handler(request: web.Request) -> web.Response:
    request.app[STATE_KEY].file_server_hits = 0
    return web.Response(text="Hits reset to 0")


async def metrics_handler(request: web.Request) -> web.Response:
    hits = request.app[STATE_KEY].file_server_hits
    return web.Response(
        text=METRICS_TEMPLATE.format(hits=hits),
        content_type="text/html",
        charset="utf-8",
    )


async def create_chirp_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    payload = await _read_json(request)
    body = payload.get("body")
    if not isinstance(body, str):
        raise BadRequestError("'body' must be a string")
    if len(body) > MAX_POST_LENGTH:
        raise BadRequestError("Chirp is too long")

    post = await _run_blocking(state.store.create_post, clean_body(body))
    return web.json_response(post.to_dict(), status=201)


async def list_chirps_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    posts = await _run_blocking(state.store.list_posts)
    return web.json_response([p.to_dict() for p in posts])


async def get_chirp_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    try:
        post_id = int(request.match_info["id"])
    except ValueError:
        raise BadRequestError("Chirp id must be an integer")
    post = await _run_blocking(state.store.get_post, post_id)
    return web.json_response(post.to_dict())


async def create_user_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    payload = await _read_json(request)
    email = _require_str(payload, "email")
    password = _require_str(payload, "password")

    account = await _run_blocking(state.store.create_account, email, password)
    return web.json_response({"id": account.id, "email": account.email}, status=201)


async def update_user_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    # Authenticate before reading the body
    account_id = await _run_blocking(
        state.sessions.authorize, request.headers.get("Authorization")
    )
    payload = await _read_json(request)
    email = _require_str(payload, "email")
    password = _require_str(payload, "password")

    account = await _run_blocking(
        state.store.update_account, account_id, email, password
    )
    return web.json_response({"id": account.id, "email": account.email})


async def login_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    payload = await _read_json(request)
    email = _require_str(payload, "email")
    password = _require_str(payload, "password")

    expires_in: Optional[int] = None
    if state.config.allow_custom_access_expiry:
        raw = payload.get("expires_in_seconds")
        if raw is not None:
            if not isinstance(raw, int) or isinstance(raw, bool):
                raise BadRequestError("'expires_in_seconds' must be an integer")
            expires_in = raw

    try:
        account, tokens = await _run_blocking(
            state.sessions.login, email, password, expires_in
        )
    except NotFoundError:
        # Unknown email and wrong password look the same to the client
        return json_error(401, "Invalid email or password")

    return web.json_response({
        "id": account.id,
        "email": account.email,
        "token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
    })


async def refresh_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    token = await _run_blocking(
        state.sessions.refresh, request.headers.get("Authorization")
    )
    return web.json_response({"token": token})


async def revoke_handler(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]
    await _run_blocking(state.sessions.revoke, request.headers.get("Authorization"))
    return web.Response(status=200)


async def app_index_handler(request: web.Request) -> web.StreamResponse:
    index = Path(request.app[STATE_KEY].config.static_dir) / "index.html"
    if not index.is_file():
        raise web.HTTPNotFound()
    return web.FileResponse(index)


# ============================================================================
# Application
# ============================================================================

def create_app(
    config: ServerConfig,
    store: Optional[DocumentStore] = None,
    sessions: Optional[SessionManager] = None,
) -> web.Application:
    """
    Build the aiohttp application

    Args:
        config: Server configuration
        store: DocumentStore (opened from config.db_path if None)
        sessions: SessionManager (built from config.jwt_secret if None)
    """
    if store is None:
        store = DocumentStore(config.db_path, PasswordHasher(config.bcrypt_rounds))
    if sessions is None:
        sessions = SessionManager(store, JWTHandler(config.jwt_secret))

    app = web.Application(
        middlewares=[cors_middleware, metrics_middleware, error_middleware]
    )
    app[STATE_KEY] = AppState(config=config, store=store, sessions=sessions)

    app.router.add_get("/api/healthz", readiness_handler)
    app.router.add_get("/api/reset", reset_handler)
    app.router.add_post("/api/login", login_handler)
    app.router.add_post("/api/refresh", refresh_handler)
    app.router.add_post("/api/revoke", revoke_handler)
    app.router.add_post("/api/chirps", create_chirp_handler)
    app.router.add_get("/api/chirps", list_chirps_handler)
    app.router.add_get("/api/chirps/{id}", get_chirp_handler)
    app.router.add_post("/api/users", create_user_handler)
    app.router.add_put("/api/users", update_user_handler)
    app.router.add_get("/admin/metrics", metrics_handler)

    app.router.add_get("/app", app_index_handler)
    app.router.add_get("/app/", app_index_handler)
    if Path(config.static_dir).is_dir():
        app.router.add_static("/app", config.static_dir)

    return app


class HTTPServer:
    """
    Runs the HTTP API on an aiohttp AppRunner / TCPSite pair.
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.logger = logging.getLogger("transport.http_api")
        self.is_running = False

    async def start(self) -> None:
        """Open the store and start listening"""
        try:
            self.app = create_app(self.config)
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.config.host, self.config.port)
            await site.start()

            self.is_running = True
            self.logger.info(
                f"HTTP server started on {self.config.host}:{self.config.port}"
            )
        except Exception as e:
            self.logger.error(f"Server startup failed: {e}")
            self.is_running = False
            raise

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop listening and release the runner"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        self.is_running = False
        self.logger.info("HTTP server stopped")
