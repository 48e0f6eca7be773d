"""
Forwarding package.

Dispatches Secrets Manager operations: cached lookups, batch fan-out over
backend-sized chunks, and verbatim pass-through for everything else.
"""
