"""Test doubles for thread_sync."""
