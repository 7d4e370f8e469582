"""Published circulars."""
