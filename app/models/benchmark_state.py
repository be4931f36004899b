"""
BenchmarkState model — the single keyed record holding every benchmark set.

data = {"benchmarkSets": {name: metrics}, "activeBenchmark": name}
"""
from sqlalchemy import Column, Text, DateTime, JSON
from sqlalchemy.sql import func

from app.database import Base


class BenchmarkState(Base):
    __tablename__ = 'benchmark_state'

    key = Column(Text, primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
