"""Command-line surface for :mod:`fiesta_cli`."""
