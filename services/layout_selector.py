from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LayoutMode(str, Enum):
    stacked = "stacked"
    split = "split"


class LayoutConfigurationError(ValueError):
    """Raised when pane bounds cannot describe a valid split."""


@dataclass(frozen=True)
class Pane:
    name: str
    sections: tuple[str, ...]
    size: float
    min_size: float
    max_size: float


@dataclass(frozen=True)
class LayoutDecision:
    mode: LayoutMode
    panes: tuple[Pane, ...]


class LayoutSelector:
    """Choose between a stacked page and a resizable request/result split.

    The decision depends only on the viewport class and whether a result is
    available, so callers re-run ``select`` whenever either one changes.
    """

    def __init__(
        self,
        request_pane_min: float = 0.30,
        result_pane_min: float = 0.40,
        request_pane_default: float = 0.40,
        narrow_breakpoint: int = 768,
    ) -> None:
        if not 0 < request_pane_min < 1 or not 0 < result_pane_min < 1:
            raise LayoutConfigurationError("Pane minimums must be between 0 and 1.")
        if request_pane_min + result_pane_min > 1:
            raise LayoutConfigurationError("Pane minimums cannot exceed the full width.")
        if not request_pane_min <= request_pane_default <= 1 - result_pane_min:
            raise LayoutConfigurationError("Default request pane size is outside its bounds.")
        if narrow_breakpoint <= 0:
            raise LayoutConfigurationError("Narrow breakpoint must be positive.")

        self._request_min = request_pane_min
        self._result_min = result_pane_min
        self._request_default = request_pane_default
        self._narrow_breakpoint = narrow_breakpoint

    def is_narrow(self, viewport_width: int) -> bool:
        return viewport_width < self._narrow_breakpoint

    def resize(self, request_fraction: float) -> tuple[float, float]:
        request_size = min(max(request_fraction, self._request_min), 1 - self._result_min)
        return request_size, 1 - request_size

    def select(
        self,
        is_narrow: bool,
        has_result: bool,
        request_fraction: float | None = None,
    ) -> LayoutDecision:
        if is_narrow or not has_result:
            return LayoutDecision(
                mode=LayoutMode.stacked,
                panes=(Pane("main", ("form", "status"), 1.0, 1.0, 1.0),),
            )

        request_size, result_size = self.resize(
            self._request_default if request_fraction is None else request_fraction
        )
        return LayoutDecision(
            mode=LayoutMode.split,
            panes=(
                Pane("request", ("form",), request_size, self._request_min, 1 - self._result_min),
                Pane("result", ("status",), result_size, self._result_min, 1 - self._request_min),
            ),
        )
