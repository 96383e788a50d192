"""HTTP API for BuildTrack."""
