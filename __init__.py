"""
Google Sheet Data API

This package serves one tab of a Google spreadsheet as nested JSON.
It reshapes the raw grid, cell background colours included, into
per-service records, caches the result briefly and rate limits clients.

Key modules:
- main.py: FastAPI application with API endpoints
- sheet_process.py: Grid transformation, colour classification and upstream response parsers
- sheet_fetcher.py: Cache-fronted fetching from the Google Sheets API
- config.py: Environment configuration
- rate_limit.py: Per-client fixed window rate limiting
- utils/result.py: Result pattern implementation for error handling
"""
