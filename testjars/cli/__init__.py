"""Command line interface for testjars."""
