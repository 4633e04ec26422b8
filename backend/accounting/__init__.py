# accounting/__init__.py
"""
Accounting app - Double-entry ledger for Stockledger.

This app provides:
- Account: Chart of Accounts with hierarchy and cached balances
- JournalEntry: Posted journal entry headers
- AccountingEntry: Debit/credit lines
- LedgerSequence: Period-scoped document number counters

Only accounting.ledger writes entries and balances.
"""
