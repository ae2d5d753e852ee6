"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~authgrant.exceptions.AuthgrantError` subclass.
Shell wrappers can inspect the exit code to tell a rejected callback from a
broken configuration without parsing stderr.

Example::

    $ authgrant callback "myapp://callback#error=access_denied" --grant implicit
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the callback did not yield credentials
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The authorization response was rejected or the token exchange failed."""
