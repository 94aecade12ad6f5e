"""Task outcome history."""
