import logging
from typing import Callable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TypesettingRenderer(Protocol):
    async def render(self, expression: str, display_mode: bool) -> None:
        ...


class SafeRenderer:
    """
    Shields the controllers from the typesetting layer.

    Prior content is cleared before each render (when the renderer supports
    clear()), and any renderer failure is logged, never raised.
    """

    def __init__(self, renderer: Optional[TypesettingRenderer] = None):
        self.renderer = renderer
        self._warned_unavailable = False

    async def render(self, expression: str, display_mode: bool = False) -> None:
        if self.renderer is None:
            if not self._warned_unavailable:
                logger.warning("[RENDER SKIPPED] typesetting renderer unavailable")
                self._warned_unavailable = True
            return

        try:
            clear = getattr(self.renderer, "clear", None)
            if callable(clear):
                clear()
            await self.renderer.render(expression, display_mode)
        except Exception as e:
            logger.error(
                "[RENDER FAIL] renderer=%s error=%s: %s",
                type(self.renderer).__name__,
                type(e).__name__,
                e,
            )


class LoggingRenderer:
    """Plain-text renderer for the console: $$...$$ for display, $...$ inline."""

    def __init__(self, write: Callable[[str], None] = print):
        self.write = write

    async def render(self, expression: str, display_mode: bool) -> None:
        self.write(f"$${expression}$$" if display_mode else f"${expression}$")
