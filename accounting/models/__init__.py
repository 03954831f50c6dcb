from .ledgers import LedgerEntry, BranchCash, HeadquarterCash, BankStatement, LedgerHead

LEDGERS = {m.LEDGER: m for m in (BranchCash, HeadquarterCash, BankStatement)}
