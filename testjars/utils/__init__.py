"""Utility modules for testjars."""
