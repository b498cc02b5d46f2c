"""Application layer: ports and services of the vote engine."""
