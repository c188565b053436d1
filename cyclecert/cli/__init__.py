"""cyclecert CLI — Typer-based command-line interface.

Provides the ``cycle-certs`` command: ``run`` starts the certificate
loop, ``version`` prints the installed version.

All console output uses Rich.
"""
