"""Server-rendered pages: dashboard, login and admin."""

import html
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from app.auth import AuthService, SessionUser, get_auth_service, get_current_user, login_required, require_admin
from app.services.plant_service import PlantService, get_plant_service

logger = logging.getLogger(__name__)

router = APIRouter()

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""

_LOGOUT_FORM = '<form method="post" action="/auth/logout"><button type="submit">Log out</button></form>'


def _render(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(_PAGE.format(title=html.escape(title), body=body))


@router.get("/", response_class=HTMLResponse)
async def index(
    user: SessionUser = Depends(login_required),
    plant_service: PlantService = Depends(get_plant_service),
):
    plant = plant_service.get_plant()
    admin_link = '<p><a href="/admin">Admin</a></p>' if user.is_admin else ""
    watered_by = f" by {html.escape(plant.watered_by)}" if plant.watered_by else ""
    body = (
        f"<h1>{html.escape(plant.name)}</h1>"
        f'<p id="health" data-status="{plant.health_status().value}">Status: {plant.health_status().value}</p>'
        f"<p>Last watered: {html.escape(plant.formatted_time_since_watering())}{watered_by}</p>"
        f"<p>Signed in as {html.escape(user.name)} ({html.escape(user.email)})</p>"
        '<button id="water" onclick="fetch(\'/api/plant/water\', {method: \'POST\'})'
        '.then(() => location.reload())">Water the plant</button>'
        f"{admin_link}{_LOGOUT_FORM}"
    )
    return _render("Watered", body)


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    user: Optional[SessionUser] = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    if user is not None:
        return RedirectResponse("/", status_code=303)

    body = '<h1>Watered</h1><p><a href="/auth/login">Sign in with Google</a></p>'
    if auth_service.demo_mode:
        body += (
            "<h2>Demo login</h2>"
            '<form method="get" action="/auth/demo-login">'
            '<input type="email" name="email" placeholder="demo@example.com" required>'
            '<input type="text" name="name" placeholder="Name">'
            '<button type="submit">Log in</button>'
            "</form>"
        )
    return _render("Watered - Login", body)


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(user: SessionUser = Depends(require_admin)):
    body = (
        "<h1>Admin</h1>"
        f"<p>Signed in as {html.escape(user.email)}</p>"
        "<ul>"
        '<li><a href="/admin/config">Configuration</a></li>'
        '<li><a href="/admin/users">Users</a></li>'
        '<li><a href="/admin/history">History</a></li>'
        '<li><a href="/admin/stats">Stats</a></li>'
        "</ul>"
        f'<p><a href="/">Back</a></p>{_LOGOUT_FORM}'
    )
    return _render("Watered - Admin", body)
