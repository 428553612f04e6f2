"""
Prompt composition: a template registry and placeholder substitution.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
import logging
import re

import jinja2

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"{{([^}]+)}}")

State = Mapping[str, Any]
TemplateType = Union[str, Callable[[State], str]]


@dataclass(frozen=True)
class LiteralTemplate:
    """Template content given inline."""
    content: str


@dataclass(frozen=True)
class FileTemplate:
    """Template content stored in a file, relative to the registry base dir."""
    path: str


TemplateSource = Union[LiteralTemplate, FileTemplate, str]


class TemplateRegistry:
    """Named prompt templates, loaded once at startup."""

    def __init__(self, base_dir: Union[str, Path, None] = None):
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self._templates: Dict[str, str] = {}

    def initialize(self, templates: Mapping[str, TemplateSource]) -> None:
        """
        Load templates into the registry.

        Literal templates are stored under their name. File templates are read
        from ``base_dir`` and stored under both the name and the path they were
        given with, so either can be used as a template reference later.

        Raises:
            FileNotFoundError: if a file template does not exist.
        """
        logger.debug(f"Initializing {len(templates)} templates: {list(templates)}")

        for name, source in templates.items():
            if isinstance(source, FileTemplate):
                resolved = self.base_dir / source.path
                logger.debug(f"Loading template '{name}' from {resolved}")
                content = resolved.read_text(encoding="utf-8")
                self._templates[name] = content
                self._templates[source.path] = content
            elif isinstance(source, LiteralTemplate):
                self._templates[name] = source.content
            else:
                self._templates[name] = source

        logger.info(f"Template registry ready with {len(self._templates)} entries")

    def register(self, name: str, content: str) -> None:
        self._templates[name] = content

    def get(self, template: str) -> str:
        """Return the registered content for ``template``, or ``template`` itself."""
        content = self._templates.get(template)
        logger.debug(f"Template lookup '{template[:100]}': found={content is not None}")
        return content if content is not None else template

    def names(self) -> List[str]:
        return list(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)


def _resolve_path(state: Any, path: str) -> Any:
    value = state
    for key in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        elif isinstance(value, Sequence) and not isinstance(value, str) and key.isdigit():
            try:
                value = value[int(key)]
            except IndexError:
                return None
        else:
            value = getattr(value, key, None)
    return value


def compose_context(
    state: State,
    template: TemplateType,
    registry: Optional[TemplateRegistry] = None,
    templating_engine: Optional[str] = None,
) -> str:
    """
    Compose a prompt by filling ``{{placeholder}}`` slots from ``state``.

    Placeholders may use dotted paths (``{{user.name}}``) to reach nested
    values. Anything that does not resolve, or resolves to ``None``, becomes
    an empty string, so the default engine never fails on a bad template.

    Args:
        state: Values to substitute.
        template: Template text, a registered template name, or a callable
            that builds the template text from the state.
        registry: Optional registry used to resolve template names.
        templating_engine: ``"jinja2"`` to render with Jinja2 instead of the
            plain substitution. Jinja2 syntax errors propagate.

    Returns:
        The composed prompt.

    Example:
        >>> compose_context({"a": {"b": "X"}}, "Hello, {{a.b}}!")
        'Hello, X!'
    """
    template_str = template(state) if callable(template) else template

    if registry is not None:
        template_str = registry.get(template_str)

    if templating_engine == "jinja2":
        env = jinja2.Environment(loader=jinja2.BaseLoader(), autoescape=False)
        return env.from_string(template_str).render(dict(state))
    if templating_engine is not None:
        raise ValueError(f"Unsupported templating engine: {templating_engine}")

    def substitute(match: re.Match) -> str:
        value = _resolve_path(state, match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(substitute, template_str)


def add_header(header: str, body: str) -> str:
    """Prefix ``body`` with a header line; empty bodies produce nothing."""
    if not body:
        return ""
    return f"{header}\n{body}\n" if header else f"{body}\n"
