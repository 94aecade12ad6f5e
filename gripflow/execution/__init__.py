"""Target queue, rendezvous timing and the task orchestrator."""
