"""auth/ -- Authentication and admin sessions for Mailomat.

Layer rule: auth/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/, subscriptions/, or newsletter/.
api/ and newsletter/ import from auth/, not the other way around.
"""
