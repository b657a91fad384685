"""CLI module for vue_ui."""
