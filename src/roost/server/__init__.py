"""ASGI request pipeline: dispatch, auth gating, error mapping, sending."""
