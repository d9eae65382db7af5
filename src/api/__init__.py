"""REST API for the trivia assessment service."""
