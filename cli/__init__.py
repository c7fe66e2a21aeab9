"""Terminal dashboard and commands for the flood data-provider API."""
