"""Public operations. Each module exposes ``handle`` coroutines taking AppState.

No Starlette imports here; transport.py handles the HTTP wiring.
"""
