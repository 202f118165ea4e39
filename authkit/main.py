from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authkit.api.routers import account, auth, oauth, permissions, roles, sessions, users
from authkit.shared.config import get_settings


settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title="Authkit API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(oauth.router)
app.include_router(sessions.router)
app.include_router(account.router)
app.include_router(permissions.router)
app.include_router(roles.router)
app.include_router(users.router)


@app.get("/health")
def health():
    return {"status": "ok"}
