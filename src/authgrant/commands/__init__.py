"""Built-in CLI commands for authgrant.

Each submodule defines either a Typer sub-app or plain command functions
that :func:`authgrant.app.main` registers on the root application.

Submodules:
    grant: ``challenge``, ``defaults`` and ``callback`` commands.
    provider: ``provider`` sub-group for managing provider profiles.
"""
