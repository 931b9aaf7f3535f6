"""Clarity Finance: personal finance tracking backend.

This package provides the server side of the Clarity Finance app:
- Plaid API proxy routes for linking banks and pulling transactions
- Supabase (or local DuckDB) persistence for the transactions table
- Dashboard aggregation built on Polars
- A bundled demo dataset that flows through the same aggregation code
- A Typer CLI for serving the API and inspecting demo data
"""

__version__ = "0.1.0"
