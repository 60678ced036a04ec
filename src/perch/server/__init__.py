"""ASGI glue: request handling, response sending, error mapping, listening."""
