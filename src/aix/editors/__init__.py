"""Editor adapters, strategies and install orchestration."""
