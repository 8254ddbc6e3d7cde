"""Application services layer (reactive pipeline primitives).

Services coordinate work between domains and infrastructure: observable
values, latest-wins background stages, and delivery to the UI thread. They
should avoid UI concerns.
"""
