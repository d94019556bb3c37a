"""
activation/scripts.py

Renders the activation unit for a shell: one script, sourced once at session
start, that defines the dispatcher, the bypass and refresh entry points,
registers the trigger, and runs the first reconciliation.

Templates ship as package data under activation/templates/. The only
substitutions are the resolver binary, the CLI program the scripts call back
for reconciliation, and the diagnostic prefix, each quoted for the target
shell.
"""

import logging
from importlib import resources
from typing import Optional

from binding_engine.config import Settings

from .dialects import ShellDialect, get_dialect

logger = logging.getLogger(__name__)

_PLACEHOLDERS = ("@RESOLVER@", "@PROGRAM@", "@PREFIX@")


def load_template(dialect: ShellDialect) -> str:
    template = resources.files("activation") / "templates" / dialect.template
    return template.read_text(encoding="utf-8")


def render_activation(shell: str, settings: Optional[Settings] = None) -> str:
    """
    Return the activation script for `shell`.

    Raises:
        UnsupportedShellError: if no dialect exists for `shell`.
    """
    settings = settings or Settings()
    dialect = get_dialect(shell)
    script = load_template(dialect)

    values = {
        "@RESOLVER@": dialect.quote(settings.resolver),
        "@PROGRAM@": dialect.quote(settings.program),
        "@PREFIX@": dialect.quote(settings.log_prefix),
    }
    for placeholder in _PLACEHOLDERS:
        script = script.replace(placeholder, values[placeholder])

    logger.debug(
        "Rendered %s activation (resolver=%s program=%s)",
        dialect.name, settings.resolver, settings.program,
    )
    return script
