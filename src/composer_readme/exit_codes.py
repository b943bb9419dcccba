"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~composer_readme.exceptions.ComposerReadmeError`
subclass. Shell wrappers can inspect the exit code to tell a typo in a
package name apart from a Packagist outage without parsing stderr.

Example::

    $ composer-readme info Monolog/Monolog
    $ echo $?
    2   # EXIT_INVALID_INPUT -- package names must be lowercase
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_INPUT = 2
"""The command was invoked with an invalid package name, version, query or limit."""

EXIT_NOT_FOUND = 4
"""The requested package or version does not exist on the registry."""

EXIT_UPSTREAM_FAILURE = 5
"""The registry or source host returned an error (5xx, rate limit)."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
