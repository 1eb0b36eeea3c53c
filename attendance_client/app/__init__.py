"""
Attendance client application package.

Layers, leaves first: storage backends, the expiring cache, the
stale-while-revalidate orchestrator, the HTTP adapter for the remote
attendance endpoint, the user session, and the domain services built on
top of them. ``main`` wires everything into the command line interface.
"""
