"""Tool catalog — advertises tools to the model and dispatches its calls.

Tools are pure functions from a validated argument model to a result model.
They never see PlayerState; the reducer folds their results in afterwards.
Argument models clamp instead of reject wherever a safe value exists, so a
bad argument can spoil at most the one result it belongs to.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, BeforeValidator

from lore_engine.models.chat import ToolSchema
from lore_engine.security.content_filter import filter_text


class ToolNotFoundError(LookupError):
    """Raised when the model asks for a tool the catalog does not carry."""


# --- Argument coercion helpers (used as Annotated metadata) ---


def capped_text(limit: int) -> BeforeValidator:
    """Stringify, strip, defuse active markup and truncate free text.

    Tool text ends up in events and player state shown to clients, so it goes
    through the same output filter as the narration.
    """

    def _cap(v: Any) -> str:
        text = filter_text(("" if v is None else str(v)).strip()) or ""
        # Truncation can expose a tag prefix; filter the cut text again.
        return filter_text(text[:limit]) or ""

    return BeforeValidator(_cap)


def clamped_int(low: int, high: int) -> BeforeValidator:
    def _clamp(v: Any) -> int:
        return max(low, min(high, int(v)))

    return BeforeValidator(_clamp)


def one_of(options: Iterable[str], fallback: str) -> BeforeValidator:
    """Lower-case and match against a fixed set; anything else becomes ``fallback``."""
    allowed = frozenset(options)

    def _pick(v: Any) -> str:
        value = ("" if v is None else str(v)).strip().lower()
        return value if value in allowed else fallback

    return BeforeValidator(_pick)


# --- Catalog ---


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    args_model: type[BaseModel]
    handler: Callable[[Any], BaseModel]

    def schema(self) -> ToolSchema:
        parameters = self.args_model.model_json_schema()
        parameters.pop("title", None)
        return ToolSchema(name=self.name, description=self.description, parameters=parameters)


class ToolCatalog:
    """Registry of tools keyed by their exact (case-sensitive) name."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[ToolSchema]:
        return [tool.schema() for tool in self._tools.values()]

    def dispatch(self, name: str, arguments: dict[str, Any] | None) -> BaseModel:
        """Validate ``arguments`` against the tool's model and run it.

        Raises:
            ToolNotFoundError: no tool is registered under ``name``.
            pydantic.ValidationError: arguments cannot be coerced.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        args = tool.args_model.model_validate(arguments or {})
        return tool.handler(args)
