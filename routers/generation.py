"""Generation endpoints backed by one LifecycleController per application.

The deployment is single-user: every caller shares the same request state, so
a submit or reset from one client supersedes any other client's request and
``GET /state`` reports the latest result to whoever asks.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response
from fastapi.responses import PlainTextResponse

from app.core.config import Settings, get_settings
from schemas.generation import GenerationRequestInput, LayoutResponse, StateResponse
from services.generation_client import AspectRatio
from services.layout_selector import LayoutSelector
from services.lifecycle import LifecycleController, Success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


def get_controller(request: Request) -> LifecycleController:
    return request.app.state.controller


def get_layout_selector(request: Request) -> LayoutSelector:
    return request.app.state.layout_selector


def _snapshot(controller: LifecycleController) -> StateResponse:
    return StateResponse.from_state(controller.state, controller.sequence)


@router.post("/generate", response_model=StateResponse, status_code=202)
async def generate(
    payload: GenerationRequestInput,
    background_tasks: BackgroundTasks,
    response: Response,
    wait: bool = Query(default=False),
    controller: LifecycleController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    request = payload.to_request(AspectRatio(settings.default_aspect_ratio))
    ticket = controller.begin(request)

    if wait:
        await controller.complete(ticket, request)
        response.status_code = 200
        return _snapshot(controller)

    background_tasks.add_task(controller.complete, ticket, request)
    return _snapshot(controller)


@router.get("/state", response_model=StateResponse)
async def get_state(controller: LifecycleController = Depends(get_controller)) -> StateResponse:
    return _snapshot(controller)


@router.post("/reset", response_model=StateResponse)
async def reset(controller: LifecycleController = Depends(get_controller)) -> StateResponse:
    controller.reset()
    return _snapshot(controller)


@router.get("/layout", response_model=LayoutResponse)
async def get_layout(
    narrow: bool | None = Query(default=None),
    viewport_width: int | None = Query(default=None, ge=1),
    request_fraction: float | None = Query(default=None, gt=0, lt=1),
    controller: LifecycleController = Depends(get_controller),
    selector: LayoutSelector = Depends(get_layout_selector),
) -> LayoutResponse:
    if narrow is None:
        if viewport_width is None:
            raise HTTPException(status_code=422, detail="Provide narrow or viewport_width.")
        narrow = selector.is_narrow(viewport_width)

    decision = selector.select(
        is_narrow=narrow,
        has_result=isinstance(controller.state, Success),
        request_fraction=request_fraction,
    )
    return LayoutResponse.from_decision(decision)


@router.get("/result/text", response_class=PlainTextResponse)
async def get_result_text(controller: LifecycleController = Depends(get_controller)) -> str:
    state = controller.state
    if not isinstance(state, Success):
        raise HTTPException(status_code=404, detail="No generated content available.")
    return state.result.body
