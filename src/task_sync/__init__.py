"""Client-side synchronization layer for a user's task list."""
