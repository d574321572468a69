"""Discovery Simulator backend."""
