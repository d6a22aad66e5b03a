"""LabTerm HTTP and WebSocket server."""
