"""
binding_engine/config.py

Runtime settings, read from the environment.

An optional dotenv file is loaded first so users can keep their settings in
one place; variables already present in the environment win over the file.

    CMDSHIELD_ENV_FILE          dotenv file (default ~/.config/cmdshield/cmdshield.env)
    CMDSHIELD_RESOLVER          resolver / executor binary (default "shwrap")
    CMDSHIELD_RESOLVER_TIMEOUT  seconds allowed for `list --simple` (default 2.0)
    CMDSHIELD_DEBUG             debug flag, on unless empty or "0"
    CMDSHIELD_LOG_PREFIX        diagnostic line prefix (default "cmdshield")
    CMDSHIELD_PROGRAM           CLI name the activation scripts call back
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .diagnostics import DEFAULT_PREFIX, DiagnosticLog, parse_debug_flag

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = os.path.join("~", ".config", "cmdshield", "cmdshield.env")
DEFAULT_RESOLVER = "shwrap"
DEFAULT_RESOLVER_TIMEOUT = 2.0
DEFAULT_PROGRAM = "cmdshield"

# Name of the shell variable that carries the binding set between reconciles.
BINDINGS_VARIABLE = "CMDSHIELD_COMMANDS"


@dataclass
class Settings:
    resolver: str = DEFAULT_RESOLVER
    resolver_timeout: float = DEFAULT_RESOLVER_TIMEOUT
    debug: bool = False
    log_prefix: str = DEFAULT_PREFIX
    program: str = DEFAULT_PROGRAM

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from `env` (defaults to os.environ)."""
        env = os.environ if env is None else env

        timeout_raw = env.get("CMDSHIELD_RESOLVER_TIMEOUT", "")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_RESOLVER_TIMEOUT
        except ValueError:
            logger.warning(
                "Invalid CMDSHIELD_RESOLVER_TIMEOUT=%r, using %.1fs",
                timeout_raw, DEFAULT_RESOLVER_TIMEOUT,
            )
            timeout = DEFAULT_RESOLVER_TIMEOUT
        if timeout <= 0:
            timeout = DEFAULT_RESOLVER_TIMEOUT

        return cls(
            resolver=env.get("CMDSHIELD_RESOLVER") or DEFAULT_RESOLVER,
            resolver_timeout=timeout,
            debug=parse_debug_flag(env.get("CMDSHIELD_DEBUG")),
            log_prefix=env.get("CMDSHIELD_LOG_PREFIX") or DEFAULT_PREFIX,
            program=env.get("CMDSHIELD_PROGRAM") or DEFAULT_PROGRAM,
        )

    def diagnostics(self) -> DiagnosticLog:
        return DiagnosticLog(enabled=self.debug, prefix=self.log_prefix)


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load the dotenv file (if it exists) into os.environ, then read Settings.

    Args:
        env_file : Explicit dotenv path. Falls back to $CMDSHIELD_ENV_FILE,
                   then to ~/.config/cmdshield/cmdshield.env.
    """
    path = os.path.expanduser(
        env_file or os.environ.get("CMDSHIELD_ENV_FILE") or DEFAULT_ENV_FILE
    )
    if os.path.isfile(path):
        load_dotenv(path, override=False)
        logger.debug("Loaded settings file %s", path)
    return Settings.from_env()
