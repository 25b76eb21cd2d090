"""Music Terminal UI — remote control dashboard for the macOS Music app."""
