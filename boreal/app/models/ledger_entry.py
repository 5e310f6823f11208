"""
Ledger Entry database model.

Immutable double-entry accounting records.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, CheckConstraint, DDL, event
from sqlalchemy.sql import func
from boreal.app.db.session import Base
from boreal.app.models.billing_enums import LedgerAccount


class LedgerEntry(Base):
    """
    Ledger Entry model.

    Immutable record of financial movement.
    Double-entry principle: entries sharing a tx_id always balance
    (sum of debits == sum of credits).
    NO updates or deletions allowed; the database rejects both.
    """
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Groups the entries of one balanced transaction
    tx_id = Column(String(36), nullable=False, index=True)

    account = Column(Enum(LedgerAccount), nullable=False, index=True)

    # Financials
    debit = Column(Numeric(12, 2), nullable=False)
    credit = Column(Numeric(12, 2), nullable=False)
    description = Column(String(255), nullable=True)

    # Schedule line or payout batch the entry was posted for
    reference_id = Column(String(64), nullable=True, index=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint('debit >= 0', name='ck_ledger_entries_debit_non_negative'),
        CheckConstraint('credit >= 0', name='ck_ledger_entries_credit_non_negative'),
    )

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, tx='{self.tx_id}', account='{self.account.value}', debit={self.debit}, credit={self.credit})>"


# Append-only enforcement at the storage layer.
# Installed together with the table so it also binds direct SQL access.

_SQLITE_NO_DELETE = DDL(
    "CREATE TRIGGER ledger_entries_no_delete BEFORE DELETE ON ledger_entries "
    "BEGIN SELECT RAISE(ABORT, 'ledger_entries rows are immutable and cannot be deleted'); END"
)

_SQLITE_NO_UPDATE = DDL(
    "CREATE TRIGGER ledger_entries_no_update BEFORE UPDATE ON ledger_entries "
    "BEGIN SELECT RAISE(ABORT, 'ledger_entries rows are immutable and cannot be updated'); END"
)

_PG_GUARD_FUNCTION = DDL(
    "CREATE OR REPLACE FUNCTION prevent_ledger_entries_mutation() "
    "RETURNS trigger AS $$ "
    "BEGIN "
    "RAISE EXCEPTION USING MESSAGE = 'ledger_entries rows are immutable and cannot be ' || lower(TG_OP) || 'd'; "
    "END; "
    "$$ LANGUAGE plpgsql"
)

_PG_NO_DELETE = DDL(
    "CREATE TRIGGER ledger_entries_no_delete BEFORE DELETE ON ledger_entries "
    "FOR EACH ROW EXECUTE FUNCTION prevent_ledger_entries_mutation()"
)

_PG_NO_UPDATE = DDL(
    "CREATE TRIGGER ledger_entries_no_update BEFORE UPDATE ON ledger_entries "
    "FOR EACH ROW EXECUTE FUNCTION prevent_ledger_entries_mutation()"
)

for _ddl in (_SQLITE_NO_DELETE, _SQLITE_NO_UPDATE):
    event.listen(LedgerEntry.__table__, "after_create", _ddl.execute_if(dialect="sqlite"))

for _ddl in (_PG_GUARD_FUNCTION, _PG_NO_DELETE, _PG_NO_UPDATE):
    event.listen(LedgerEntry.__table__, "after_create", _ddl.execute_if(dialect="postgresql"))
