# inventory/__init__.py
"""
Inventory app - stock movements and their postings.

This app provides:
- Product: catalog boundary record carrying on-hand stock
- InventoryTransaction: one recorded movement, linked to its journal entry

Movements are recorded through inventory.commands.
"""
