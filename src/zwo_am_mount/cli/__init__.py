"""Command-line interface for ZWO AM mounts."""
