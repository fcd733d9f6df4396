from __future__ import annotations

import asyncio
import json

import httpx

from services.generation_client import (
    GENERIC_FAILURE_MESSAGE,
    ContentType,
    ErrorKind,
    GenerationClient,
    GenerationRequest,
)
from services.lifecycle import Failed, Idle, LifecycleController, Loading, RequestState, Success
from services.response_normalizer import GenerationResult, ResponseNormalizer

BASE = "https://generator.example.com"


def _controller(handler) -> LifecycleController:  # type: ignore[no-untyped-def]
    return LifecycleController(
        client=GenerationClient(
            endpoint=f"{BASE}/generate-content", transport=httpx.MockTransport(handler)
        ),
        normalizer=ResponseNormalizer(service_base_url=BASE),
    )


def _request(url: str = "https://example.com/post") -> GenerationRequest:
    return GenerationRequest(url=url, content_type=ContentType.facebook)


def test_controller_starts_idle() -> None:
    controller = _controller(lambda request: httpx.Response(200, json={}))

    assert isinstance(controller.state, Idle)
    assert controller.sequence == 0


def test_begin_enters_loading_synchronously() -> None:
    controller = _controller(lambda request: httpx.Response(200, json={}))

    ticket = controller.begin(_request())

    assert ticket == 1
    assert isinstance(controller.state, Loading)


def test_submit_sanitizes_and_absolutizes() -> None:
    controller = _controller(
        lambda request: httpx.Response(
            200,
            json={"content": {"raw": "![a](b)\n\nHello"}, "image_url": "/static/x.png"},
        )
    )
    seen: list[RequestState] = []
    controller.add_listener(seen.append)

    state = asyncio.run(controller.submit(_request()))

    assert isinstance(state, Success)
    assert state.result.body == "Hello"
    assert state.result.image_url == f"{BASE}/static/x.png"
    assert state.result.source_url == "https://example.com/post"
    assert state.result.content_type == "facebook"
    assert [item.status for item in seen] == ["loading", "success"]


def test_plain_image_line_with_null_image() -> None:
    controller = _controller(
        lambda request: httpx.Response(
            200, json={"content": "Image: http://x\n\nHi there", "image_url": None}
        )
    )

    state = asyncio.run(controller.submit(_request()))

    assert isinstance(state, Success)
    assert state.result.body == "Hi there"
    assert state.result.image_url is None


def test_service_error_detail_becomes_failed_state() -> None:
    controller = _controller(lambda request: httpx.Response(422, json={"detail": "Bad URL"}))

    state = asyncio.run(controller.submit(_request()))

    assert isinstance(state, Failed)
    assert state.error.message == "Bad URL"
    assert state.error.kind is ErrorKind.service
    assert controller.state is state


def test_new_submit_clears_previous_failure() -> None:
    responses = iter(
        [
            httpx.Response(500, json={"detail": "Boom"}),
            httpx.Response(200, json={"content": "Recovered"}),
        ]
    )
    controller = _controller(lambda request: next(responses))
    seen: list[RequestState] = []

    asyncio.run(controller.submit(_request()))
    controller.add_listener(seen.append)
    state = asyncio.run(controller.submit(_request()))

    assert [item.status for item in seen] == ["loading", "success"]
    assert isinstance(state, Success)
    assert state.result.body == "Recovered"


def test_reset_returns_to_idle_from_any_state() -> None:
    controller = _controller(lambda request: httpx.Response(200, json={"content": "Hi"}))

    controller.reset()
    assert isinstance(controller.state, Idle)

    controller.begin(_request())
    controller.reset()
    assert isinstance(controller.state, Idle)

    asyncio.run(controller.submit(_request()))
    controller.reset()
    assert isinstance(controller.state, Idle)


def test_stale_completion_never_overwrites_fresh_result() -> None:
    stale_url = "https://example.com/stale"
    fresh_url = "https://example.com/fresh"

    async def scenario() -> tuple[LifecycleController, RequestState]:
        release_stale = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            url = json.loads(request.content)["url"]
            if url == stale_url:
                await release_stale.wait()
            return httpx.Response(200, json={"url": url, "content": f"Body for {url}"})

        controller = _controller(handler)
        stale_task = asyncio.create_task(controller.submit(_request(stale_url)))
        await asyncio.sleep(0)

        fresh_state = await controller.submit(_request(fresh_url))
        release_stale.set()
        await stale_task
        return controller, fresh_state

    controller, fresh_state = asyncio.run(scenario())

    assert isinstance(fresh_state, Success)
    assert isinstance(controller.state, Success)
    assert controller.state.result.source_url == fresh_url
    assert controller.sequence == 2


def test_completion_after_reset_is_discarded() -> None:
    async def scenario() -> LifecycleController:
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={"content": "Late"})

        controller = _controller(handler)
        pending = asyncio.create_task(controller.submit(_request()))
        await asyncio.sleep(0)
        controller.reset()
        release.set()
        await pending
        return controller

    controller = asyncio.run(scenario())

    assert isinstance(controller.state, Idle)


class _BrokenNormalizer(ResponseNormalizer):
    def normalize(self, payload: object, request: GenerationRequest) -> GenerationResult:
        raise KeyError("content")


def test_normalization_crash_becomes_failed_state() -> None:
    controller = LifecycleController(
        client=GenerationClient(
            endpoint=f"{BASE}/generate-content",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"content": "Hi"})
            ),
        ),
        normalizer=_BrokenNormalizer(service_base_url=BASE),
    )
    seen: list[RequestState] = []
    controller.add_listener(seen.append)

    state = asyncio.run(controller.submit(_request()))

    assert isinstance(state, Failed)
    assert state.error.message == GENERIC_FAILURE_MESSAGE
    assert state.error.kind is ErrorKind.malformed_response
    assert [item.status for item in seen] == ["loading", "failed"]
