"""Core identifier services and run orchestration."""
