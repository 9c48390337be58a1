"""Core infrastructure: configuration, time, logging, async helpers and health."""
