"""Authentication and session-token service for the CRM portal."""
