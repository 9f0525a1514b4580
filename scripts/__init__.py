"""Command line utilities for controller services."""
