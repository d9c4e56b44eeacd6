from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow.core.config import get_settings
from taskflow.core.errors import install_error_handlers
from taskflow.core.logging_config import configure_logging
from taskflow.core.middleware import init_request_timing
from taskflow.routes import (
    admin,
    auth,
    chat_room_members,
    chat_rooms,
    dashboard,
    messages,
    milestones,
    projects,
    tasks,
    users,
    workspace_members,
    workspaces,
)

settings = get_settings()
configure_logging(settings)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
init_request_timing(app)
install_error_handlers(app)

app.include_router(auth.router)
app.include_router(workspaces.router)
app.include_router(workspace_members.router)
app.include_router(projects.router)
app.include_router(milestones.router)
app.include_router(tasks.router)
app.include_router(chat_rooms.router)
app.include_router(chat_room_members.router)
app.include_router(messages.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(dashboard.router)


@app.get("/")
def read_root():
    return {"name": settings.app_name, "status": "ok"}
