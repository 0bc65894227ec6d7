"""FastAPI application exposing polls, votes and results."""
