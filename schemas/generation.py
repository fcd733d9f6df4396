from __future__ import annotations

from pydantic import BaseModel, ConfigDict, HttpUrl

from services.generation_client import AspectRatio, ContentType, GenerationRequest
from services.layout_selector import LayoutDecision, LayoutMode
from services.lifecycle import SUCCESS_NOTICE, Failed, RequestState, Success


class GenerationRequestInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: HttpUrl
    content_type: ContentType
    image_prompt_override: str | None = None
    aspect_ratio: AspectRatio | None = None

    def to_request(self, default_aspect_ratio: AspectRatio) -> GenerationRequest:
        prompt = (self.image_prompt_override or "").strip()
        return GenerationRequest(
            url=str(self.url),
            content_type=self.content_type,
            image_prompt_override=prompt or None,
            aspect_ratio=self.aspect_ratio or default_aspect_ratio,
        )


class GenerationResultResponse(BaseModel):
    source_url: str
    content_type: str
    image_url: str | None = None
    body: str


class ErrorResponse(BaseModel):
    message: str
    kind: str
    status_code: int | None = None


class StateResponse(BaseModel):
    status: str
    sequence: int
    result: GenerationResultResponse | None = None
    error: ErrorResponse | None = None
    notice: str | None = None

    @classmethod
    def from_state(cls, state: RequestState, sequence: int) -> StateResponse:
        if isinstance(state, Success):
            return cls(
                status=state.status,
                sequence=sequence,
                result=GenerationResultResponse(
                    source_url=state.result.source_url,
                    content_type=state.result.content_type,
                    image_url=state.result.image_url,
                    body=state.result.body,
                ),
                notice=SUCCESS_NOTICE,
            )
        if isinstance(state, Failed):
            return cls(
                status=state.status,
                sequence=sequence,
                error=ErrorResponse(
                    message=state.error.message,
                    kind=state.error.kind.value,
                    status_code=state.error.status_code,
                ),
            )
        return cls(status=state.status, sequence=sequence)


class PaneResponse(BaseModel):
    name: str
    sections: list[str]
    size: float
    min_size: float
    max_size: float


class LayoutResponse(BaseModel):
    mode: LayoutMode
    panes: list[PaneResponse]

    @classmethod
    def from_decision(cls, decision: LayoutDecision) -> LayoutResponse:
        return cls(
            mode=decision.mode,
            panes=[
                PaneResponse(
                    name=pane.name,
                    sections=list(pane.sections),
                    size=pane.size,
                    min_size=pane.min_size,
                    max_size=pane.max_size,
                )
                for pane in decision.panes
            ],
        )
