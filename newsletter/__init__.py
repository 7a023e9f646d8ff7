"""newsletter/ -- Publishing issues to confirmed subscribers.

Layer rule: newsletter/ may import from core/, auth/ and subscriptions/.
It does NOT import from api/.
"""
