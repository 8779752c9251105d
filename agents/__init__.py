"""Chat pipeline agents: interpreter, executor and orchestrator."""
