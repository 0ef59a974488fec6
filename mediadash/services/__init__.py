"""Download simulation, platform search and runtime configuration services."""
