"""api/ -- FastAPI integration: error mapping and transport models.

Layer rule: api/ may import from every other package; nothing imports api/.
"""
