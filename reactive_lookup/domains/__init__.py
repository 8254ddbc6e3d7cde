"""Domain layer (retry policy, GitHub user model, derived values).

Domain modules should not depend on UI or on the network. Clients and sleep
functions are injected by the caller.
"""
