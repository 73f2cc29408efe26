from functools import lru_cache

from jinja2 import StrictUndefined
from jinja2 import Template as JinjaTemplate


@lru_cache(maxsize=64)
def _compile(source: str) -> JinjaTemplate:
    return JinjaTemplate(source, undefined=StrictUndefined)


def render(message_jinja: str, ctx: dict) -> str:
    return _compile(message_jinja).render(**ctx)
