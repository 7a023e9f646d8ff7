"""subscriptions/ -- Subscriber registration and confirmation for Mailomat.

Layer rule: subscriptions/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/, auth/, or newsletter/.
"""
