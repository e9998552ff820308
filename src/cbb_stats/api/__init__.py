"""HTTP API for player and team reports."""
