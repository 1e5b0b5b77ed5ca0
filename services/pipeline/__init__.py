"""Season summary pipeline orchestration."""
