"""
Product Catalog – single-screen product list backed by a Supabase project.

Shared utilities (config, logging, domain models) live at the package root;
``store`` talks to the remote backend, ``ui`` owns the screen state and
``frontend`` hosts it over HTTP.
"""

__all__ = [
    "config",
    "logging",
]
