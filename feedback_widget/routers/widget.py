"""
Widget Control Router
=====================

HTTP face of the control handle, for hosts that drive the widget from
outside the page's own code:

- POST /widget/open     : publish the open command
- POST /widget/close    : publish the close command
- POST /widget/config   : publish a partial config update
- GET  /widget/state    : snapshot of the mounted widget

Endpoints only publish on the page channel or read state; the widget reacts
through its command bus exactly as for in-page calls.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from feedback_widget.config import settings
from feedback_widget.host import HostPage
from feedback_widget.services.command_bus import publish_close, publish_config, publish_open

logger = logging.getLogger(__name__)

router = APIRouter()


def get_page(request: Request) -> HostPage:
    return request.app.state.page


@router.post("/open")
async def open_widget(page: HostPage = Depends(get_page)):
    publish_open(page.channel)
    return {"published": "open"}


@router.post("/close")
async def close_widget(page: HostPage = Depends(get_page)):
    publish_close(page.channel)
    return {"published": "close"}


@router.post("/config")
async def update_config(
    partial_config: Dict[str, Any] = Body(...),
    page: HostPage = Depends(get_page),
):
    publish_config(page.channel, partial_config)
    logger.info("Config update published over HTTP", extra={"keys": sorted(partial_config)})
    return {"published": "config", "keys": sorted(partial_config)}


@router.get("/state")
async def widget_state(page: HostPage = Depends(get_page)):
    container = page.get_container(settings.container_id)
    if container is None or container.widget is None:
        raise HTTPException(status_code=404, detail="No widget mounted on this page")
    return container.widget.snapshot()
