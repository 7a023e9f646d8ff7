"""core/ -- Kernel shared by every Mailomat package: settings, database, errors, email transport.

Layer rule: core/ imports nothing from api/, auth/, subscriptions/, or newsletter/.
"""
