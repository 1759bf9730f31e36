"""
Tag Resolver

Turns a tag specification plus an origin response into the list of string
tags stored with a cache entry. Tags classify entries for bulk invalidation
(``delete_by_tag``).

Supported specification forms::

    ["books", "catalog"]                               literal tags
    lambda response, ctx: [f"book-{r['ID']}" for r in response]
    [{"value": "books"}]                               literal rule
    [{"data": "ID", "prefix": "book-"}]                field of the response
    [{"data": ["ID", "title"], "separator": "-"}]      combined fields
    [{"template": "tenant-{tenant}"}]                  context template
    ["author-{data.author_ID}"]                        template string

For list responses, ``data`` rules and ``{data.x}`` placeholders are evaluated
per row.

The resolver never raises: a failing callable, a malformed rule or a missing
field simply contributes no tags.
"""

import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from readthrough.caching.key_manager import lookup_path
from readthrough.core.config.constants import Stage
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][\w.]*)\}")


class TagResolver:
    """Resolves tag specifications into de-duplicated tag lists."""

    def resolve_tags(
        self,
        tag_spec: Any,
        response: Any,
        context_fields: Mapping[str, Any] | None = None,
    ) -> list[str]:
        """
        Resolve tags for a response.

        Args:
            tag_spec: List of literals/rules/templates, a callable, or None
            response: Origin response (object or list of rows)
            context_fields: tenant, user, locale, params, hash, ...

        Returns:
            Tags in first-seen order, without duplicates
        """
        if tag_spec is None:
            return []

        context = dict(context_fields or {})

        if callable(tag_spec):
            return self._dedupe(self._from_callable(tag_spec, response, context))

        if isinstance(tag_spec, (str, Mapping)):
            tag_spec = [tag_spec]
        elif not isinstance(tag_spec, Iterable):
            log_stage(
                logger,
                Stage.TAG_RESOLUTION,
                "Ignoring malformed tag specification",
                level="debug",
                spec_type=type(tag_spec).__name__,
            )
            return []

        tags: list[str] = []
        for rule in tag_spec:
            tags.extend(self._resolve_rule(rule, response, context))
        return self._dedupe(tags)

    def _resolve_rule(self, rule: Any, response: Any, context: dict[str, Any]) -> list[str]:
        if isinstance(rule, str):
            if _PLACEHOLDER.search(rule):
                return self._from_template(rule, response, context)
            return [rule] if rule else []

        if callable(rule):
            return self._from_callable(rule, response, context)

        if not isinstance(rule, Mapping):
            return []

        if "value" in rule:
            value = rule["value"]
            return [str(value)] if value not in (None, "") else []
        if "data" in rule:
            return self._from_data(rule, response)
        if "template" in rule and isinstance(rule["template"], str):
            return self._from_template(rule["template"], response, context)

        log_stage(logger, Stage.TAG_RESOLUTION, "Ignoring unknown tag rule", level="debug", rule=str(rule))
        return []

    def _from_callable(self, fn: Callable, response: Any, context: dict[str, Any]) -> list[str]:
        try:
            produced = fn(response, context)
        except Exception as e:
            log_stage(
                logger,
                Stage.TAG_RESOLUTION,
                "Tag function failed",
                level="warning",
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        if produced is None:
            return []
        if isinstance(produced, str):
            produced = [produced]
        if not isinstance(produced, Iterable):
            return []
        return [str(tag) for tag in produced if tag not in (None, "")]

    def _from_data(self, rule: Mapping[str, Any], response: Any) -> list[str]:
        paths = rule["data"]
        if isinstance(paths, str):
            paths = [paths]
        if not isinstance(paths, (list, tuple)) or not all(isinstance(p, str) for p in paths):
            return []

        prefix = str(rule.get("prefix") or "")
        suffix = str(rule.get("suffix") or "")
        separator = str(rule.get("separator") or "_")

        tags = []
        for row in self._rows(response):
            values = [lookup_path(row, path) for path in paths]
            if any(value is None or value == "" for value in values):
                continue
            tags.append(f"{prefix}{separator.join(str(v) for v in values)}{suffix}")
        return tags

    def _from_template(self, template: str, response: Any, context: dict[str, Any]) -> list[str]:
        names = _PLACEHOLDER.findall(template)
        rows = self._rows(response) if any(n.startswith("data.") for n in names) else [None]

        tags = []
        for row in rows:
            missing = False

            def substitute(match: re.Match) -> str:
                nonlocal missing
                name = match.group(1)
                if name.startswith("data."):
                    value = lookup_path(row, name[len("data."):])
                else:
                    value = lookup_path(context, name)
                if value is None or value == "":
                    missing = True
                    return ""
                return str(value)

            tag = _PLACEHOLDER.sub(substitute, template)
            if not missing and tag:
                tags.append(tag)
        return tags

    @staticmethod
    def _rows(response: Any) -> list[Any]:
        if response is None:
            return []
        if isinstance(response, (list, tuple)):
            return list(response)
        return [response]

    @staticmethod
    def _dedupe(tags: Iterable[str]) -> list[str]:
        return list(dict.fromkeys(tags))
