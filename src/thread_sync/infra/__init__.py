"""Infrastructure implementations for thread_sync."""
