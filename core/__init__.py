"""Core runtime for the workbench: action execution against a sandbox."""
