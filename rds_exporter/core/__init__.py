"""Process infrastructure: shutdown, HTTP server and runner."""
