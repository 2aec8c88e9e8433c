"""Model text grammar and file storage."""
