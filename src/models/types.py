import sqlalchemy as sa
from sqlalchemy.types import TypeDecorator


class Uint256(TypeDecorator):
    """Unsigned 256-bit integer stored as a decimal string.

    Ledger amounts are 18-decimal fixed point values that overflow BIGINT,
    and NUMERIC goes through float on sqlite.
    """

    impl = sa.String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"negative amount {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


def amount_column() -> sa.Column:
    return sa.Column(Uint256(), nullable=False, default=0)
