"""Mock collaborators for the scanner tests."""
