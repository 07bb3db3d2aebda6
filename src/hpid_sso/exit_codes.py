"""Numeric process exit codes for the ``hpid-sso`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~hpid_sso.exceptions.HPIDError` subclass.
Shell wrappers can inspect the exit code to tell a misconfigured
deployment apart from a rejected sign-in without parsing stderr.

Example::

    $ hpid-sso validate "$TOKEN"
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- token inactive or issued to another client
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration errors)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The authentication transaction resolved to a failure."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred talking to the identity provider."""
