"""Domain layer for vatkit application."""
