"""Motion planning and trajectory execution clients."""
