from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import AuthGate, IdentityProvider, JWTIdentityProvider
from .config import DEFAULT_JWT_SECRET, Settings, configure_logging
from .errors import PortfolioError, TransportError
from .events import EventBus
from .models import AboutFields, LoginRequest, MessageFields, ProjectFields, SkillCategoryFields
from .notifications import EmailNotifier, build_notifier
from .services import Services
from .store import RecordStore, build_store

logger = logging.getLogger(__name__)

DEMO_IDENTITY = {"sub": "demo", "email": "demo@localhost", "admin": True, "demo": True}


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def get_services(request: Request) -> Services:
    return request.app.state.services


async def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    """Admin gate for mutating routes. Demo mode never consults the identity provider."""
    state = request.app.state
    if state.settings.is_demo:
        identity = DEMO_IDENTITY
    else:
        identity = await state.gate.authorize(authorization)
    request.state.user = identity
    return identity


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    identity_provider: Optional[IdentityProvider] = None,
    notifier: Optional[EmailNotifier] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if identity_provider is None and not settings.is_demo and settings.jwt_secret == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set when running in remote mode")
    store = store or build_store(settings)
    if identity_provider is None:
        registry = store if hasattr(store, "set_user_claims") else None
        identity_provider = JWTIdentityProvider(
            settings.jwt_secret, settings.jwt_algorithm, settings.token_expire_minutes, registry
        )

    events = EventBus()
    # Demo mode never writes remote messages, so there is nothing to notify about.
    if not settings.is_demo:
        notifier = notifier or build_notifier(settings)
        if notifier is not None:
            notifier.attach(events)

    app = FastAPI(title="Portfolio API", version="1.0.0")
    app.state.settings = settings
    app.state.store = store
    app.state.events = events
    app.state.gate = AuthGate(identity_provider)
    app.state.identity_provider = identity_provider
    app.state.services = Services.build(store, events)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PortfolioError)
    async def portfolio_error_handler(request: Request, exc: PortfolioError):
        body: Dict[str, Any] = {"success": False, "error": exc.message}
        missing = getattr(exc, "missing_fields", None)
        invalid = getattr(exc, "invalid_fields", None)
        if missing:
            body["missing_fields"] = missing
        if invalid:
            body["invalid_fields"] = invalid
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        invalid = [".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid data format", "invalid_fields": invalid},
        )

    @app.on_event("startup")
    async def startup_event():
        logger.info("Portfolio API starting in %s mode", settings.mode.value)
        ensure_indexes = getattr(store, "ensure_indexes", None)
        if ensure_indexes is None:
            return
        try:
            await ensure_indexes()
        except TransportError as e:
            logger.warning("Could not create indexes at startup: %s", e)

    @app.on_event("shutdown")
    async def shutdown_event():
        await events.drain()
        await store.close()

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    # Health check
    @app.get("/")
    async def root(request: Request):
        return {"status": "ok", "mode": request.app.state.settings.mode.value}

    # Auth endpoints
    @app.post("/api/auth/login")
    async def login(body: LoginRequest, request: Request):
        state = request.app.state
        provider = state.identity_provider
        if state.settings.is_demo:
            token = provider.create_token(DEMO_IDENTITY["email"], {"admin": True, "demo": True})
        else:
            token = await provider.authenticate(body.email, body.password)
        return ok(
            {
                "access_token": token,
                "token_type": "bearer",
                "expires_in": state.settings.token_expire_minutes * 60,
            },
            "Signed in successfully",
        )

    # Projects endpoints
    @app.get("/api/projects")
    async def list_projects(services: Services = Depends(get_services)):
        return ok(await services.projects.get_all())

    @app.get("/api/projects/{project_id}")
    async def get_project(project_id: str, services: Services = Depends(get_services)):
        return ok(await services.projects.get_by_id(project_id))

    @app.post("/api/projects", dependencies=[Depends(require_admin)])
    async def create_project(body: ProjectFields, services: Services = Depends(get_services)):
        project = await services.projects.create(body)
        return ok(project, "Project created successfully")

    @app.put("/api/projects/{project_id}", dependencies=[Depends(require_admin)])
    async def update_project(project_id: str, body: ProjectFields, services: Services = Depends(get_services)):
        project = await services.projects.update(project_id, body)
        return ok(project, "Project updated successfully")

    @app.delete("/api/projects/{project_id}", dependencies=[Depends(require_admin)])
    async def delete_project(project_id: str, services: Services = Depends(get_services)):
        await services.projects.delete(project_id)
        return ok(message="Project deleted successfully")

    # Skills endpoints
    @app.get("/api/skills")
    async def list_skills(services: Services = Depends(get_services)):
        return ok(await services.skills.get_all())

    @app.get("/api/skills/{skill_id}")
    async def get_skill(skill_id: str, services: Services = Depends(get_services)):
        return ok(await services.skills.get_by_id(skill_id))

    @app.post("/api/skills", dependencies=[Depends(require_admin)])
    async def create_skill(body: SkillCategoryFields, services: Services = Depends(get_services)):
        category = await services.skills.create(body)
        return ok(category, "Skill category created successfully")

    @app.put("/api/skills/{skill_id}", dependencies=[Depends(require_admin)])
    async def update_skill(skill_id: str, body: SkillCategoryFields, services: Services = Depends(get_services)):
        category = await services.skills.update(skill_id, body)
        return ok(category, "Skill category updated successfully")

    @app.delete("/api/skills/{skill_id}", dependencies=[Depends(require_admin)])
    async def delete_skill(skill_id: str, services: Services = Depends(get_services)):
        await services.skills.delete(skill_id)
        return ok(message="Skill category deleted successfully")

    # About endpoints
    @app.get("/api/about")
    async def get_about(services: Services = Depends(get_services)):
        return ok(await services.about.get())

    @app.put("/api/about", dependencies=[Depends(require_admin)])
    async def update_about(body: AboutFields, services: Services = Depends(get_services)):
        profile = await services.about.update(body)
        return ok(profile, "About info updated successfully")

    # Messages endpoints
    @app.post("/api/messages")
    async def create_message(body: MessageFields, services: Services = Depends(get_services)):
        message = await services.messages.create(body)
        return ok(message, "Message sent successfully")

    @app.get("/api/messages", dependencies=[Depends(require_admin)])
    async def list_messages(services: Services = Depends(get_services)):
        return ok(await services.messages.get_all())

    @app.get("/api/messages/{message_id}", dependencies=[Depends(require_admin)])
    async def get_message(message_id: str, services: Services = Depends(get_services)):
        return ok(await services.messages.get_by_id(message_id))

    @app.put("/api/messages/{message_id}/read", dependencies=[Depends(require_admin)])
    async def mark_message_read(message_id: str, services: Services = Depends(get_services)):
        message = await services.messages.mark_as_read(message_id)
        return ok(message, "Message marked as read")

    @app.delete("/api/messages/{message_id}", dependencies=[Depends(require_admin)])
    async def delete_message(message_id: str, services: Services = Depends(get_services)):
        await services.messages.delete(message_id)
        return ok(message="Message deleted successfully")

    # Admin dashboard
    @app.get("/api/admin/stats", dependencies=[Depends(require_admin)])
    async def admin_stats(services: Services = Depends(get_services)):
        return ok(await services.dashboard_stats())


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(settings), host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
