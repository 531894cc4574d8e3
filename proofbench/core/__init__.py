"""Logging and tracing setup shared by the CLI and the orchestrator."""
