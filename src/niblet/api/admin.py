"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from niblet.api.models import (
    PersonalityCreateRequest,
    PersonalityUpdateRequest,
    TemplateCreateRequest,
    TemplateRenderRequest,
    TemplateUpdateRequest,
)
from niblet.domain.assistant import Personality

if TYPE_CHECKING:
    from niblet.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/personalities", dependencies=[Depends(require_admin)])
async def list_personalities(request: Request) -> dict[str, object]:
    """Return every personality, active or not."""
    container: AppContainer = request.app.state.container
    personalities = container.personality_service.list_personalities()
    return {"personalities": [asdict(p) for p in personalities]}


@router.post(
    "/personalities",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_201_CREATED,
)
async def add_personality(
    payload: PersonalityCreateRequest, request: Request
) -> dict[str, object]:
    """Create a personality."""
    container: AppContainer = request.app.state.container
    personality = container.personality_service.add_personality(
        Personality(**payload.model_dump())
    )
    return asdict(personality)


@router.patch("/personalities/{name}", dependencies=[Depends(require_admin)])
async def update_personality(
    name: str, payload: PersonalityUpdateRequest, request: Request
) -> dict[str, object]:
    """Update fields of a personality."""
    container: AppContainer = request.app.state.container
    personality = container.personality_service.update_personality(
        name, payload.model_dump(exclude_none=True)
    )
    return asdict(personality)


@router.get("/templates", dependencies=[Depends(require_admin)])
async def list_templates(request: Request) -> dict[str, object]:
    """Return every prompt template."""
    container: AppContainer = request.app.state.container
    templates = container.personality_service.list_templates()
    return {"templates": [asdict(t) for t in templates]}


@router.post(
    "/templates",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_201_CREATED,
)
async def add_template(
    payload: TemplateCreateRequest, request: Request
) -> dict[str, object]:
    """Create a prompt template."""
    container: AppContainer = request.app.state.container
    template = container.personality_service.add_template(
        payload.name, payload.template, payload.category
    )
    return asdict(template)


@router.patch("/templates/{template_id}", dependencies=[Depends(require_admin)])
async def update_template(
    template_id: str, payload: TemplateUpdateRequest, request: Request
) -> dict[str, object]:
    """Update fields of a prompt template."""
    container: AppContainer = request.app.state.container
    template = container.personality_service.update_template(
        template_id, payload.model_dump(exclude_none=True)
    )
    return asdict(template)


@router.delete(
    "/templates/{template_id}",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_template(template_id: str, request: Request) -> None:
    """Delete a prompt template."""
    container: AppContainer = request.app.state.container
    container.personality_service.delete_template(template_id)


@router.post("/templates/{template_id}/render", dependencies=[Depends(require_admin)])
async def render_template(
    template_id: str, payload: TemplateRenderRequest, request: Request
) -> dict[str, str]:
    """Fill a template with sample values."""
    container: AppContainer = request.app.state.container
    text = container.personality_service.render_template(template_id, payload.values)
    return {"text": text}


@router.get("/ui", response_class=HTMLResponse)
async def admin_ui() -> HTMLResponse:
    """Minimal admin UI that consumes the admin API."""
    return HTMLResponse(_ADMIN_UI_HTML)


_ADMIN_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Niblet Admin</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      h1 { margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      input, textarea { padding: 0.4rem 0.6rem; width: 420px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>Niblet Admin</h1>
    <div class="row">
      <label>Admin token</label><br />
      <input id="token" type="password" placeholder="X-Admin-Token" />
    </div>
    <div class="row">
      <button onclick="request('GET', '/admin/personalities')">Personalities</button>
      <button onclick="request('GET', '/admin/templates')">Templates</button>
    </div>
    <div class="row">
      <label>New personality</label><br />
      <input id="name" placeholder="name" /><br />
      <textarea id="prompt" rows="4" placeholder="system prompt"></textarea><br />
      <button onclick="addPersonality()">Add personality</button>
    </div>
    <pre id="output">Ready.</pre>
    <script>
      async function request(method, path, body) {
        const token = document.getElementById('token').value;
        const output = document.getElementById('output');
        output.textContent = 'Loading...';
        const res = await fetch(path, {
          method,
          headers: { 'X-Admin-Token': token, 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : undefined
        });
        if (!res.ok) {
          output.textContent = 'Error: ' + res.status;
          return;
        }
        const data = await res.json();
        output.textContent = JSON.stringify(data, null, 2);
      }
      function addPersonality() {
        request('POST', '/admin/personalities', {
          name: document.getElementById('name').value,
          system_prompt: document.getElementById('prompt').value
        });
      }
    </script>
  </body>
</html>
"""
