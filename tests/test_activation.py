"""
tests/test_activation.py

Unit tests for shell dialects, ScriptTable, activation script rendering and
Settings.

Run with:
    python -m pytest tests/test_activation.py -v
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from activation import DIALECTS, ScriptTable, get_dialect, render_activation
from binding_engine.base import InvalidCommandName, UnsupportedShellError
from binding_engine.config import BINDINGS_VARIABLE, DEFAULT_RESOLVER_TIMEOUT, Settings


# ─────────────────────────────────────────────────────────────────────────────
# Dialect lookup
# ─────────────────────────────────────────────────────────────────────────────

class TestGetDialect(unittest.TestCase):

    def test_plain_names(self):
        for shell in ("bash", "zsh", "fish"):
            self.assertEqual(get_dialect(shell).name, shell)

    def test_paths_and_login_shells(self):
        self.assertEqual(get_dialect("/usr/bin/zsh").name, "zsh")
        self.assertEqual(get_dialect("-bash").name, "bash")
        self.assertEqual(get_dialect("FISH").name, "fish")

    def test_unsupported_shell(self):
        with self.assertRaises(UnsupportedShellError):
            get_dialect("tcsh")

    def test_unsupported_shell_is_a_value_error(self):
        with self.assertRaises(ValueError):
            get_dialect("powershell")


# ─────────────────────────────────────────────────────────────────────────────
# Statement syntax
# ─────────────────────────────────────────────────────────────────────────────

class TestDialectStatements(unittest.TestCase):

    def test_bash(self):
        bash = DIALECTS["bash"]
        self.assertEqual(bash.define("node"), 'function node { __cmdshield_dispatch node "$@"; }')
        self.assertEqual(bash.undefine("node"), "unset -f node 2>/dev/null")
        self.assertEqual(bash.assign("CMDSHIELD_COMMANDS", "node npm"), "CMDSHIELD_COMMANDS='node npm'")

    def test_zsh(self):
        zsh = DIALECTS["zsh"]
        self.assertEqual(zsh.undefine("node"), "(( ${+functions[node]} )) && unfunction node")
        self.assertEqual(zsh.assign("CMDSHIELD_COMMANDS", ""), "typeset -g CMDSHIELD_COMMANDS=''")

    def test_fish(self):
        fish = DIALECTS["fish"]
        self.assertEqual(
            fish.define("node"),
            "function node --description 'cmdshield interception'; "
            "__cmdshield_dispatch node $argv; end",
        )
        self.assertEqual(fish.undefine("node"), "functions --erase node")
        self.assertEqual(fish.assign("CMDSHIELD_COMMANDS", "node"), "set -g CMDSHIELD_COMMANDS 'node'")

    def test_fish_quote_escapes_single_quotes(self):
        self.assertEqual(DIALECTS["fish"].quote("it's"), "'it\\'s'")


# ─────────────────────────────────────────────────────────────────────────────
# ScriptTable
# ─────────────────────────────────────────────────────────────────────────────

class TestScriptTable(unittest.TestCase):

    def test_render_lists_statements_then_binding_set(self):
        table = ScriptTable(get_dialect("bash"))
        table.undefine("stale")
        table.define("node")
        table.define("npm")

        self.assertEqual(
            table.render(["npm", "node"]),
            "unset -f stale 2>/dev/null\n"
            'function node { __cmdshield_dispatch node "$@"; }\n'
            'function npm { __cmdshield_dispatch npm "$@"; }\n'
            "CMDSHIELD_COMMANDS='node npm'\n",
        )

    def test_render_empty_set(self):
        table = ScriptTable(get_dialect("zsh"))
        self.assertEqual(table.render([]), "typeset -g CMDSHIELD_COMMANDS=''\n")

    def test_reserved_words_are_per_shell(self):
        with self.assertRaises(InvalidCommandName):
            ScriptTable(get_dialect("fish")).define("and")
        # `and` is an ordinary command name in bash.
        ScriptTable(get_dialect("bash")).define("and")

    def test_protected_builtin_cannot_be_bound(self):
        with self.assertRaises(InvalidCommandName):
            ScriptTable(get_dialect("bash")).define("command")

    def test_builtins_called_by_bash_and_zsh_templates_cannot_be_bound(self):
        for shell in ("bash", "zsh"):
            for name in ("local", "declare"):
                with self.assertRaises(InvalidCommandName, msg=f"{shell}: {name}"):
                    ScriptTable(get_dialect(shell)).define(name)

    def test_commands_called_by_fish_template_cannot_be_bound(self):
        for name in ("env", "count"):
            with self.assertRaises(InvalidCommandName, msg=name):
                ScriptTable(get_dialect("fish")).define(name)

    def test_protected_builtins_cover_every_template(self):
        # Each template only calls helpers that a resolved name cannot shadow.
        called = {
            "bash": ("local", "declare", "printf", "unset", "eval", "command", "return"),
            "zsh": ("local", "typeset", "printf", "unfunction", "eval", "command", "return"),
            "fish": ("env", "count", "set", "test", "string", "functions", "printf",
                     "source", "command", "return"),
        }
        for shell, names in called.items():
            dialect = get_dialect(shell)
            for name in names:
                self.assertIn(
                    name,
                    dialect.reserved_words | dialect.protected_builtins,
                    f"{shell}: {name}",
                )

    def test_entry_points_cannot_be_bound(self):
        for shell in DIALECTS:
            for name in ("cmdshield_refresh", "cmdshield_bypass"):
                with self.assertRaises(InvalidCommandName, msg=f"{shell}: {name}"):
                    ScriptTable(get_dialect(shell)).define(name)

    def test_internal_prefix_cannot_be_bound(self):
        with self.assertRaises(InvalidCommandName):
            ScriptTable(get_dialect("bash")).define("__cmdshield_dispatch")

    def test_unsafe_unbind_is_not_emitted(self):
        table = ScriptTable(get_dialect("bash"))
        table.undefine("x;rm -rf /")
        self.assertEqual(table.statements, [])


# ─────────────────────────────────────────────────────────────────────────────
# Activation scripts
# ─────────────────────────────────────────────────────────────────────────────

class TestRenderActivation(unittest.TestCase):

    def test_no_placeholder_left(self):
        for shell in DIALECTS:
            script = render_activation(shell, Settings())
            for placeholder in ("@RESOLVER@", "@PROGRAM@", "@PREFIX@"):
                self.assertNotIn(placeholder, script, shell)

    def test_every_script_defines_entry_points(self):
        for shell in DIALECTS:
            script = render_activation(shell, Settings())
            self.assertIn("__cmdshield_dispatch", script)
            self.assertIn("cmdshield_bypass", script)
            self.assertIn("cmdshield_refresh", script)
            self.assertIn(BINDINGS_VARIABLE, script)
            self.assertIn(f"reconcile --shell {shell}", script)
            self.assertIn("shwrap wrap", script)

    def test_bash_registers_prompt_hook_once(self):
        script = render_activation("bash")
        self.assertIn('PROMPT_COMMAND="__cmdshield_prompt_hook;$PROMPT_COMMAND"', script)
        self.assertIn('!= *"__cmdshield_prompt_hook"*', script)

    def test_zsh_registers_chpwd_hook_once(self):
        script = render_activation("zsh")
        self.assertIn("chpwd_functions[(r)__cmdshield_directory_change_hook]", script)
        self.assertIn("chpwd_functions+=(__cmdshield_directory_change_hook)", script)

    def test_fish_uses_pwd_variable_handler(self):
        script = render_activation("fish")
        self.assertIn("function __cmdshield_directory_change_hook --on-variable PWD", script)

    def test_settings_are_quoted(self):
        settings = Settings(resolver="/opt/my tools/shwrap", program="cmdshield-dev")
        script = render_activation("bash", settings)
        self.assertIn("command '/opt/my tools/shwrap' wrap", script)
        self.assertIn("command cmdshield-dev --resolver '/opt/my tools/shwrap' reconcile", script)

    def test_unsupported_shell(self):
        with self.assertRaises(UnsupportedShellError):
            render_activation("csh")


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────

class TestSettings(unittest.TestCase):

    def test_defaults(self):
        settings = Settings.from_env({})
        self.assertEqual(settings.resolver, "shwrap")
        self.assertEqual(settings.resolver_timeout, DEFAULT_RESOLVER_TIMEOUT)
        self.assertFalse(settings.debug)
        self.assertEqual(settings.log_prefix, "cmdshield")

    def test_environment_overrides(self):
        settings = Settings.from_env({
            "CMDSHIELD_RESOLVER": "/usr/local/bin/shwrap",
            "CMDSHIELD_RESOLVER_TIMEOUT": "0.5",
            "CMDSHIELD_DEBUG": "1",
            "CMDSHIELD_LOG_PREFIX": "shield",
        })
        self.assertEqual(settings.resolver, "/usr/local/bin/shwrap")
        self.assertEqual(settings.resolver_timeout, 0.5)
        self.assertTrue(settings.debug)
        self.assertEqual(settings.diagnostics().prefix, "shield")

    def test_debug_flag_zero_or_empty_is_off(self):
        self.assertFalse(Settings.from_env({"CMDSHIELD_DEBUG": "0"}).debug)
        self.assertFalse(Settings.from_env({"CMDSHIELD_DEBUG": ""}).debug)
        self.assertTrue(Settings.from_env({"CMDSHIELD_DEBUG": "yes"}).debug)

    def test_invalid_timeout_falls_back(self):
        self.assertEqual(
            Settings.from_env({"CMDSHIELD_RESOLVER_TIMEOUT": "soon"}).resolver_timeout,
            DEFAULT_RESOLVER_TIMEOUT,
        )
        self.assertEqual(
            Settings.from_env({"CMDSHIELD_RESOLVER_TIMEOUT": "-1"}).resolver_timeout,
            DEFAULT_RESOLVER_TIMEOUT,
        )


if __name__ == "__main__":
    unittest.main()
