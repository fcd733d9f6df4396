from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Union

from services.content_sanitizer import sanitize_result
from services.generation_client import (
    GENERIC_FAILURE_MESSAGE,
    ErrorKind,
    GenerationClient,
    GenerationRequest,
    GenerationServiceError,
)
from services.response_normalizer import GenerationResult, ResponseNormalizer

logger = logging.getLogger(__name__)

SUCCESS_NOTICE = "Content generated successfully!"


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    kind: ErrorKind
    status_code: int | None = None


@dataclass(frozen=True)
class Idle:
    status: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Loading:
    status: ClassVar[str] = "loading"


@dataclass(frozen=True)
class Success:
    result: GenerationResult
    status: ClassVar[str] = "success"


@dataclass(frozen=True)
class Failed:
    error: ErrorInfo
    status: ClassVar[str] = "failed"


RequestState = Union[Idle, Loading, Success, Failed]
StateListener = Callable[[RequestState], None]


class LifecycleController:
    """Own the single RequestState cell and drive one generation at a time.

    Every ``begin`` and ``reset`` advances a ticket; a completion is only
    committed while its ticket is still the latest one, so a slow response
    from a superseded request can never overwrite newer state.
    """

    def __init__(self, client: GenerationClient, normalizer: ResponseNormalizer) -> None:
        self._client = client
        self._normalizer = normalizer
        self._state: RequestState = Idle()
        self._sequence = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def sequence(self) -> int:
        return self._sequence

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def begin(self, request: GenerationRequest) -> int:
        self._sequence += 1
        logger.info(
            "Generation #%s started for %s (%s)",
            self._sequence,
            request.url,
            request.content_type.value,
        )
        self._commit(Loading())
        return self._sequence

    async def complete(self, ticket: int, request: GenerationRequest) -> RequestState:
        outcome = await self._run(request)
        if ticket != self._sequence:
            logger.info(
                "Discarding completion of generation #%s; #%s is current", ticket, self._sequence
            )
            return self._state
        self._commit(outcome)
        return outcome

    async def submit(self, request: GenerationRequest) -> RequestState:
        ticket = self.begin(request)
        return await self.complete(ticket, request)

    def reset(self) -> None:
        self._sequence += 1
        self._commit(Idle())

    async def _run(self, request: GenerationRequest) -> RequestState:
        try:
            payload = await self._client.generate(request)
        except GenerationServiceError as exc:
            return Failed(ErrorInfo(exc.message, exc.kind, exc.status_code))

        try:
            result = sanitize_result(self._normalizer.normalize(payload, request))
        except Exception:  # noqa: BLE001
            logger.exception("Failed to normalize generation payload for %s", request.url)
            return Failed(ErrorInfo(GENERIC_FAILURE_MESSAGE, ErrorKind.malformed_response))

        return Success(result)

    def _commit(self, state: RequestState) -> None:
        self._state = state
        if isinstance(state, Failed):
            logger.warning("Generation #%s failed: %s", self._sequence, state.error.message)
        else:
            logger.debug("Generation state is now %s", state.status)
        for listener in self._listeners:
            listener(state)
