"""
AirFryHub forum service.

A FastAPI service for the air-fryer forum: feed, posts, comments, upvotes,
image upload and link previews over a hosted Postgres/object-storage/auth
platform, with in-memory backends for development and tests.
"""
