"""HTTP ingress and status surface."""
