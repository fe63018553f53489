"""FastAPI server exposing a rulegraph editor session."""
