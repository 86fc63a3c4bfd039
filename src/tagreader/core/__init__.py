"""Core components of the tagreader decode engine."""
