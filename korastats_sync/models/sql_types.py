from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB

# PostgreSQL uses BIGINT/JSONB, SQLite tests need INTEGER/JSON.
KORASTATS_ID_SQL_TYPE = BigInteger().with_variant(Integer, "sqlite")
DOCUMENT_SQL_TYPE = JSONB().with_variant(JSON(), "sqlite")
