from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workhub.config import settings
from workhub.lifespan import lifespan
from workhub.middleware.exceptions import register_exception_handlers
from workhub.routers import auth, finance, health, projects

app = FastAPI(
    title="WorkHub",
    description="Multi-tenant business management: access control API",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
app.include_router(finance.router, prefix="/api/finance", tags=["finance"])
